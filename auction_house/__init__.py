"""
Live player auction house: teams bid on players under a countdown timer.
"""
