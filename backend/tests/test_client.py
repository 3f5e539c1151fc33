import pytest

from whodidit.client import GameClient, IdentityStore
from whodidit.errors import StoreIOError, ValidationError
from whodidit.models import Phase
from whodidit.services.games import engine
from whodidit.services.games.projection import PHASE_VIEWS, build_snapshot


@pytest.fixture()
def table(store, tmp_path):
    """A host client and a guest client, both subscribed to one game."""
    host = GameClient(store, IdentityStore(str(tmp_path / 'host.json')))
    code = host.create_game('Alice', total_rounds=2)
    host.subscribe(code)
    guest = GameClient(store, IdentityStore(str(tmp_path / 'guest.json')))
    guest.join_game(code, 'Bob')
    guest.subscribe(code)
    yield code, host, guest
    host.unsubscribe()
    guest.unsubscribe()


# ---- identity ----

def test_identity_round_trip(tmp_path):
    identity = IdentityStore(str(tmp_path / 'nested' / 'id.json'))
    assert identity.load() is None
    identity.save('player-1')
    assert IdentityStore(identity.path).load() == 'player-1'
    identity.clear()
    assert identity.load() is None
    identity.clear()


def test_corrupt_identity_reads_as_missing(tmp_path):
    path = tmp_path / 'id.json'
    path.write_text('{not json')
    assert IdentityStore(str(path)).load() is None


def test_returning_device_gets_its_player_back(store, table, tmp_path):
    code, host, guest = table
    host.start_game()
    again = GameClient(store, IdentityStore(str(tmp_path / 'guest.json')))
    assert again.player_id == guest.player_id
    again.join_game(code, 'Bob')
    again.subscribe(code)
    assert again.current_player.name == 'Bob'
    assert len(again.snapshot.players) == 2


# ---- projection ----

def test_every_phase_has_a_view():
    assert set(PHASE_VIEWS) == set(Phase)


def test_notifications_keep_clients_in_sync(store, table):
    code, host, guest = table
    assert [p.name for p in host.snapshot.players] == ['Alice', 'Bob']
    assert host.is_host and not guest.is_host
    assert host.view()['can_start'] is True

    host.start_game()
    assert guest.snapshot.phase == Phase.ANSWERING
    assert guest.snapshot.current_round == 1

    guest.submit_answer('Alice')
    assert host.view()['answered_player_ids'] == [guest.player_id]
    assert host.view()['can_move_to_voting'] is False


def test_snapshot_only_holds_current_round(store, table):
    code, host, guest = table
    host.start_game()
    host.submit_answer('Bob')
    guest.submit_answer('Alice')
    host.move_to_voting()
    host.compute_results()
    host.advance_round()
    assert host.snapshot.current_round == 2
    assert host.snapshot.answers == ()
    assert host.snapshot.votes == ()


def test_voting_view_excludes_the_viewer(store, table):
    code, host, guest = table
    host.start_game()
    host.submit_answer('Bob')
    guest.submit_answer('Alice')
    host.move_to_voting()
    view = guest.view()
    assert [c['id'] for c in view['candidates']] == [host.player_id]
    assert len(view['answers']) == 1
    assert view['answers'][0]['text'] == 'Bob'
    with pytest.raises(ValidationError):
        guest.select_player(guest.player_id)


def test_wire_form_hides_authors_until_results(store, table):
    code, host, guest = table
    host.start_game()
    guest.submit_answer('Alice')
    hidden = build_snapshot(store, code).to_dict()
    assert 'player_id' not in hidden['answers'][0]
    assert hidden['answered_player_ids'] == [guest.player_id]

    host.submit_answer('Bob')
    host.move_to_voting()
    host.compute_results()
    shown = build_snapshot(store, code).to_dict()
    assert {a['player_id'] for a in shown['answers']} == {host.player_id, guest.player_id}


def test_results_and_leaderboard_views(store, table):
    code, host, guest = table
    host.start_game()
    host.submit_answer('Bob')
    guest.submit_answer('Alice')
    host.move_to_voting()
    guest_answer = next(a for a in host.snapshot.answers if a.player_id == guest.player_id)
    host.submit_vote(guest_answer.id, guest.player_id)
    host.compute_results()

    results = guest.view()
    by_author = {a['author_id']: a for a in results['answers']}
    assert by_author[guest.player_id]['correct_voter_ids'] == [host.player_id]
    assert by_author[host.player_id]['correct_voter_ids'] == []
    assert results['is_last_round'] is False

    host.advance_round()
    host.move_to_voting()
    host.compute_results()
    host.advance_round()
    ranking = guest.view()['ranking']
    assert [(r['rank'], r['name'], r['score']) for r in ranking] == [(1, 'Alice', 100), (2, 'Bob', 0)]


# ---- local flags ----

def test_flags_reset_when_phase_changes(store, table):
    code, host, guest = table
    host.start_game()
    guest.submit_answer('Alice')
    assert guest.flags.has_answered is True
    assert guest.flags.draft_answer == ''

    host.submit_answer('Bob')
    assert guest.flags.has_answered is True

    host.move_to_voting()
    assert guest.flags.has_answered is False
    assert guest.flags.has_voted is False


def test_failed_answer_keeps_the_draft(store, table):
    code, host, guest = table
    host.start_game()
    guest.set_draft('x' * 40)
    with pytest.raises(ValidationError):
        guest.submit_answer()
    assert guest.flags.draft_answer == 'x' * 40
    assert guest.flags.has_answered is False


def test_vote_needs_a_selection(store, table):
    code, host, guest = table
    host.start_game()
    host.submit_answer('Bob')
    guest.submit_answer('Alice')
    host.move_to_voting()
    with pytest.raises(ValidationError):
        guest.submit_vote()
    host_answer = next(a for a in guest.snapshot.answers if a.player_id == host.player_id)
    guest.select_answer(host_answer.id)
    guest.select_player(host.player_id)
    guest.submit_vote()
    assert guest.flags.has_voted is True
    assert guest.snapshot.voted_player_ids() == [guest.player_id]


# ---- resilience ----

def test_refresh_failure_keeps_previous_snapshot(store, table, monkeypatch):
    code, host, guest = table
    before = guest.snapshot

    def broken_query(*args, **kwargs):
        raise StoreIOError('network down')

    monkeypatch.setattr(store, 'query', broken_query)
    guest.refresh()
    assert guest.snapshot is before


def test_resubscribe_rebuilds_the_same_snapshot(store, table):
    code, host, guest = table
    host.start_game()
    guest.unsubscribe()
    host.submit_answer('Bob')
    assert guest.snapshot != host.snapshot

    guest.subscribe(code)
    guest.submit_answer('Alice')
    assert guest.snapshot == host.snapshot
    assert guest.snapshot == build_snapshot(store, code)
