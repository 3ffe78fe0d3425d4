"""
Tests for the FastAPI auction server.
"""

import json

import pytest
from fastapi.testclient import TestClient

from auction_house.bidding import api_server
from auction_house.bidding.api_server import create_app
from auction_house.bidding.session import AuctionSession

from conftest import FakeClock


@pytest.fixture
def session():
    return AuctionSession(seed=2024, clock=FakeClock())


@pytest.fixture
def client(session):
    return TestClient(create_app(session, start_driver=False))


def open_auction(client, player_id='P001', timer_duration=60):
    response = client.post('/auctions', json={'player_id': player_id, 'timer_duration': timer_duration})
    assert response.status_code == 201
    return response.json()['auction']


def sse_payloads(body: str):
    return [
        json.loads(line[len('data: '):])
        for line in body.splitlines()
        if line.startswith('data: ')
    ]


class TestLookups:

    def test_health(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        assert response.json()['status'] == 'ok'
        assert response.json()['countdown_running'] is False

    def test_list_teams(self, client):
        teams = client.get('/teams').json()

        assert len(teams) == 10
        assert teams[0]['team_id'] == 'MI'
        assert teams[0]['remaining_purse'] == 100.0
        assert teams[0]['players_count'] == 0

    def test_team_summary_route_is_not_a_team_id(self, client):
        response = client.get('/teams/summary')

        assert response.status_code == 200
        assert len(response.json()) == 10

    def test_unknown_team(self, client):
        assert client.get('/teams/XYZ').status_code == 404

    def test_player_filters(self, client):
        bowlers = client.get('/players', params={'role': 'Bowler'}).json()

        assert bowlers
        assert all(p['role'] == 'Bowler' for p in bowlers)

    def test_player_search(self, client):
        players = client.get('/players', params={'search': 'Kohli'}).json()

        assert players[0]['name'] == 'Virat Kohli'

    def test_get_player(self, client):
        player = client.get('/players/P001').json()

        assert player['player_id'] == 'P001'
        assert player['status'] == 'Unsold'
        assert client.get('/players/P999').status_code == 404


class TestAuctionFlow:

    def test_create_auction(self, client):
        auction = open_auction(client)

        assert auction['auction_id'] == 'AUC-0001'
        assert auction['status'] == 'live'
        assert auction['seconds_remaining'] == 60
        assert auction['current_bidder'] is None

    def test_create_for_unknown_player(self, client):
        response = client.post('/auctions', json={'player_id': 'P999'})

        assert response.status_code == 404
        assert response.json()['detail']['error'] == 'player_not_found'

    def test_create_for_live_player_conflicts(self, client):
        open_auction(client)

        response = client.post('/auctions', json={'player_id': 'P001'})

        assert response.status_code == 409
        assert response.json()['detail']['error'] == 'player_not_available'

    def test_create_rejects_zero_timer(self, client):
        response = client.post('/auctions', json={'player_id': 'P001', 'timer_duration': 0})

        assert response.status_code == 422

    def test_bid_and_settle(self, client, session):
        auction = open_auction(client)
        amount = auction['current_bid'] + 1

        bid = client.post(f"/auctions/{auction['auction_id']}/bids", json={'team_id': 'MI', 'amount': amount})
        assert bid.status_code == 200
        assert bid.json()['message'] == 'Bid placed successfully'
        assert bid.json()['auction']['current_bidder'] == 'MI'

        settle = client.post(f"/auctions/{auction['auction_id']}/settle")
        assert settle.status_code == 200
        assert settle.json()['message'] == 'Player sold successfully'
        assert settle.json()['auction']['status'] == 'completed'
        assert settle.json()['auction']['seconds_remaining'] == 0

        team = client.get('/teams/MI').json()
        assert team['players_count'] == 1
        assert team['remaining_purse'] == pytest.approx(100 - amount)
        session.store.validate()

    def test_settle_without_bids(self, client):
        auction = open_auction(client)

        settle = client.post(f"/auctions/{auction['auction_id']}/settle")

        assert settle.json()['message'] == 'Player marked as unsold'
        assert client.get('/players/P001').json()['status'] == 'Unsold'

    def test_second_settle_conflicts(self, client):
        auction = open_auction(client)
        client.post(f"/auctions/{auction['auction_id']}/settle")

        response = client.post(f"/auctions/{auction['auction_id']}/settle")

        assert response.status_code == 409
        assert response.json()['detail']['error'] == 'auction_not_live'

    def test_low_bid_is_bad_request(self, client):
        auction = open_auction(client)

        response = client.post(
            f"/auctions/{auction['auction_id']}/bids",
            json={'team_id': 'MI', 'amount': auction['current_bid']},
        )

        assert response.status_code == 400
        detail = response.json()['detail']
        assert detail['success'] is False
        assert detail['error'] == 'bid_too_low'
        assert detail['category'] == 'validation'
        assert detail['message'] == 'Bid must be higher than current bid'

    def test_overspend_is_bad_request(self, client):
        auction = open_auction(client)

        response = client.post(
            f"/auctions/{auction['auction_id']}/bids", json={'team_id': 'MI', 'amount': 150}
        )

        assert response.status_code == 400
        assert response.json()['detail']['error'] == 'insufficient_funds'

    def test_bid_on_unknown_auction(self, client):
        response = client.post('/auctions/AUC-0404/bids', json={'team_id': 'MI', 'amount': 10})

        assert response.status_code == 404

    def test_non_positive_amount_fails_validation(self, client):
        auction = open_auction(client)

        response = client.post(
            f"/auctions/{auction['auction_id']}/bids", json={'team_id': 'MI', 'amount': -1}
        )

        assert response.status_code == 422

    def test_busy_auction_returns_429(self, client, session):
        auction = open_auction(client)
        lock = session.engine.auction_lock(auction['auction_id'])

        lock.acquire()
        try:
            response = client.post(
                f"/auctions/{auction['auction_id']}/bids",
                json={'team_id': 'MI', 'amount': auction['current_bid'] + 1},
            )
        finally:
            lock.release()

        assert response.status_code == 429
        assert response.headers['retry-after'] == '1'
        assert response.json()['detail']['error'] == 'bid_in_progress'

    def test_live_only_listing(self, client):
        first = open_auction(client, 'P001')
        open_auction(client, 'P002')
        client.post(f"/auctions/{first['auction_id']}/settle")

        live = client.get('/auctions', params={'live_only': True}).json()

        assert [a['player_id'] for a in live] == ['P002']
        assert len(client.get('/auctions').json()) == 2

    def test_countdown_follows_clock(self, client, session):
        auction = open_auction(client)
        session.clock.advance(25)

        fetched = client.get(f"/auctions/{auction['auction_id']}").json()

        assert fetched['seconds_remaining'] == 35

    def test_eligible_bidders(self, client):
        auction = open_auction(client)
        client.post(
            f"/auctions/{auction['auction_id']}/bids",
            json={'team_id': 'MI', 'amount': auction['current_bid'] + 1},
        )

        bidders = client.get(f"/auctions/{auction['auction_id']}/bidders").json()

        assert len(bidders) == 9
        assert 'MI' not in [b['team_id'] for b in bidders]


class TestObservation:

    def test_activity_feed(self, client):
        auction = open_auction(client)
        client.post(
            f"/auctions/{auction['auction_id']}/bids",
            json={'team_id': 'CSK', 'amount': auction['current_bid'] + 1},
        )

        activities = client.get('/activities', params={'limit': 5}).json()

        assert [a['activity_type'] for a in activities] == ['bid', 'auction_start']
        assert activities[0]['team_id'] == 'CSK'

    def test_activity_limit_bounds(self, client):
        assert client.get('/activities', params={'limit': 0}).status_code == 422
        assert client.get('/activities', params={'limit': 101}).status_code == 422

    def test_dashboard_metrics(self, client):
        open_auction(client)

        metrics = client.get('/dashboard/metrics').json()

        assert metrics['total_teams'] == 10
        assert metrics['total_players'] == 100
        assert metrics['live_auctions_count'] == 1
        assert metrics['unsold_players_count'] == 99

    def test_events_for_completed_auction(self, client, session):
        auction = open_auction(client)
        client.post(
            f"/auctions/{auction['auction_id']}/bids",
            json={'team_id': 'RCB', 'amount': auction['current_bid'] + 2},
        )
        client.post(f"/auctions/{auction['auction_id']}/settle")

        response = client.get(f"/auctions/{auction['auction_id']}/events")

        assert response.status_code == 200
        assert response.headers['content-type'].startswith('text/event-stream')
        payloads = sse_payloads(response.text)
        assert [p['type'] for p in payloads] == ['auction_end']
        assert payloads[0]['auction']['current_bidder'] == 'RCB'
        assert session.channel.subscriber_count() == 0

    def test_events_for_unknown_auction(self, client):
        assert client.get('/auctions/AUC-0404/events').status_code == 404

    def test_events_deliver_auction_end_when_settled_after_snapshot(self, client, session, monkeypatch):
        """An auction that completes right after the snapshot still ends the stream with auction_end."""
        auction = open_auction(client)
        real_snapshot = api_server.snapshot_for

        def snapshot_then_settle(live_auction, now):
            frames = real_snapshot(live_auction, now)
            session.controller.close_auction(live_auction.auction_id)
            return frames

        monkeypatch.setattr(api_server, 'snapshot_for', snapshot_then_settle)

        response = client.get(f"/auctions/{auction['auction_id']}/events")

        payloads = sse_payloads(response.text)
        assert [p['type'] for p in payloads] == ['auction_update', 'timer_update', 'auction_end']
        assert session.channel.subscriber_count() == 0

    def test_settled_auction_reports_actual_buyer(self, client, session):
        auction = open_auction(client, 'P001')
        other = open_auction(client, 'P002')
        auction_id = auction['auction_id']
        client.post(f"/auctions/{auction_id}/bids", json={'team_id': 'CSK', 'amount': 60})
        client.post(f"/auctions/{auction_id}/bids", json={'team_id': 'MI', 'amount': 70})
        client.post(f"/auctions/{other['auction_id']}/bids", json={'team_id': 'MI', 'amount': 40})
        client.post(f"/auctions/{other['auction_id']}/settle")

        client.post(f"/auctions/{auction_id}/settle")

        settled = client.get(f"/auctions/{auction_id}").json()
        player = client.get('/players/P001').json()
        assert settled['winner_team_id'] == player['team_id'] == 'CSK'
        assert settled['sold_price'] == player['sold_price'] == 60.0
        assert settled['current_bidder'] == 'MI'
