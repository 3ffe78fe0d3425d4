"""
Configuration constants for the live player auction house.
"""

# Team Settings
NUM_TEAMS = 10
PURSE_PER_TEAM = 100          # Crores
MAX_PLAYERS_PER_TEAM = 25
TOTAL_PURSE = NUM_TEAMS * PURSE_PER_TEAM  # 1000

# Franchise table: (team_id, name, short_name)
SEED_TEAMS = [
    ('MI', 'Mumbai Indians', 'MI'),
    ('CSK', 'Chennai Super Kings', 'CSK'),
    ('RCB', 'Royal Challengers Bangalore', 'RCB'),
    ('KKR', 'Kolkata Knight Riders', 'KKR'),
    ('DC', 'Delhi Capitals', 'DC'),
    ('SRH', 'Sunrisers Hyderabad', 'SRH'),
    ('PBKS', 'Punjab Kings', 'PBKS'),
    ('RR', 'Rajasthan Royals', 'RR'),
    ('GT', 'Gujarat Titans', 'GT'),
    ('LSG', 'Lucknow Super Giants', 'LSG'),
]

# Player Pool
SEED_PLAYER_NAMES = [
    'Virat Kohli', 'Rohit Sharma', 'MS Dhoni', 'Jasprit Bumrah', 'Ravindra Jadeja',
    'KL Rahul', 'Hardik Pandya', 'Rishabh Pant', 'Shikhar Dhawan', 'Mohammed Shami',
    'Yuzvendra Chahal', 'Shreyas Iyer', 'Suryakumar Yadav', 'Ishan Kishan', 'Washington Sundar',
    'Axar Patel', 'Deepak Chahar', 'Shardul Thakur', 'Prithvi Shaw', 'Shubman Gill',
    'Ruturaj Gaikwad', 'Devdutt Padikkal', 'Mayank Agarwal', 'Sanju Samson', 'Jos Buttler',
    'David Warner', 'Glenn Maxwell', 'Rashid Khan', 'Kagiso Rabada', 'Trent Boult',
    'Mitchell Starc', 'Pat Cummins', 'Kane Williamson', 'Ben Stokes', 'Chris Gayle',
    'AB de Villiers', 'Quinton de Kock', 'Faf du Plessis', 'Andre Russell', 'Sunil Narine',
    'Moeen Ali', 'Sam Curran', 'Liam Livingstone', 'Jonny Bairstow', 'Jason Roy',
    'Marcus Stoinis', 'Glenn Phillips', 'Tim David', 'Wanindu Hasaranga', 'Maheesh Theekshana',
    'Ajinkya Rahane', 'Cheteshwar Pujara', 'Dinesh Karthik', 'Robin Uthappa', 'Ambati Rayudu',
    'Manish Pandey', 'Kedar Jadhav', 'Krunal Pandya', 'Ravichandran Ashwin', 'Kuldeep Yadav',
    'Mohammed Siraj', 'Umesh Yadav', 'Navdeep Saini', 'Khaleel Ahmed', 'T Natarajan',
    'Arshdeep Singh', 'Harshal Patel', 'Avesh Khan', 'Prasidh Krishna', 'Mukesh Choudhary',
    'Tushar Deshpande', 'Mohsin Khan', 'Umran Malik', 'Yash Dayal', 'Kartik Tyagi',
    'Rahul Tewatia', 'Rahul Tripathi', 'Nitish Rana', 'Venkatesh Iyer', 'Tilak Varma',
    'Abhishek Sharma', 'Yashasvi Jaiswal', 'Sarfaraz Khan', 'Rinku Singh', 'Ramandeep Singh',
    'Shahrukh Khan', 'Ravi Bishnoi', 'Arshad Khan', 'Harpreet Brar', 'Lalit Yadav',
    'Riyan Parag', 'Dhruv Jurel', 'Jitesh Sharma', 'Suyash Prabhudessai', 'Atharva Taide',
    'Nehal Wadhera', 'Vivrant Sharma', 'Kumar Kushagra', 'Shashank Singh', 'Anmolpreet Singh',
]

SEED_NATIONALITIES = [
    'India', 'Australia', 'England', 'South Africa',
    'New Zealand', 'West Indies', 'Sri Lanka',
]

# Base price generation (crores, one decimal place)
MIN_BASE_PRICE = 0.5
BASE_PRICE_SPREAD = 15.0
MIN_PLAYER_AGE = 20
PLAYER_AGE_SPREAD = 15
DEFAULT_SEED = 2024

# Auction timing
DEFAULT_TIMER_DURATION = 60   # seconds per auction
COUNTDOWN_TICK_INTERVAL = 1.0  # seconds between countdown ticks

# Activity log
ACTIVITY_LOG_CAPACITY = 100
RECENT_ACTIVITY_LIMIT = 20

# Notification channel
NOTIFICATION_QUEUE_SIZE = 256    # per-subscriber backlog before oldest is dropped
SSE_HEARTBEAT_SECONDS = 15

# Player search
FUZZY_SEARCH_THRESHOLD = 70  # fuzz.partial_ratio score (0-100)

# Activity journal
ACTIVITY_JOURNAL_DIR = 'data/activity_journal'

# Logging
LOG_LEVEL = 'INFO'
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# ===== API SERVER CONFIGURATION =====

API_HOST = '127.0.0.1'
API_PORT = 8000
API_TITLE = 'Live Player Auction API'
API_VERSION = '1.0.0'
