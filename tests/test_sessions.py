"""Tests for the edit session store and the client draft."""

import threading
from datetime import date

import pytest

from client_registry.models.db import Client
from client_registry.schemas import ClientDraft, ClientForm, form_errors
from client_registry.sessions import SESSION_ID_KEY, EditSessionStore, ensure_session_id
from conftest import FakeClock
from pydantic import ValidationError


class TestEditSessionStore:
    """Test the single-slot draft store."""

    def test_begin_and_current(self):
        store = EditSessionStore()
        store.begin("s1", ClientDraft(name="Ana"))

        assert store.current("s1").name == "Ana"

    def test_current_without_draft(self):
        assert EditSessionStore().current("nobody") is None

    def test_begin_overwrites_previous_draft(self):
        store = EditSessionStore()
        store.begin("s1", ClientDraft(id=1, name="Ana"))
        store.begin("s1", ClientDraft(name="Luis"))

        draft = store.current("s1")
        assert draft.name == "Luis"
        assert draft.id is None
        assert len(store) == 1

    def test_complete_clears_slot(self):
        store = EditSessionStore()
        store.begin("s1", ClientDraft(name="Ana"))

        store.complete("s1")

        assert store.current("s1") is None
        # completing twice is harmless
        store.complete("s1")

    def test_sessions_are_isolated(self):
        store = EditSessionStore()
        store.begin("s1", ClientDraft(name="Ana"))
        store.begin("s2", ClientDraft(name="Luis"))

        store.complete("s1")

        assert store.current("s1") is None
        assert store.current("s2").name == "Luis"

    def test_stored_draft_is_copied(self):
        store = EditSessionStore()
        draft = ClientDraft(name="Ana")
        store.begin("s1", draft)

        draft.name = "Changed"
        store.current("s1").name = "Changed again"

        assert store.current("s1").name == "Ana"

    def test_concurrent_sessions(self):
        store = EditSessionStore()

        def worker(i):
            for _ in range(50):
                store.begin(f"s{i}", ClientDraft(name=f"n{i}"))
                assert store.current(f"s{i}").name == f"n{i}"

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 8


class TestDraftExpiry:
    """Test that abandoned drafts are dropped."""

    def test_draft_expires_after_ttl(self):
        clock = FakeClock()
        store = EditSessionStore(ttl_seconds=60, clock=clock)
        store.begin("s1", ClientDraft(id=3, name="Ana"))

        clock.now = 59
        assert store.current("s1").name == "Ana"

        clock.now = 60
        assert store.current("s1") is None
        assert len(store) == 0

    def test_begin_restarts_expiry(self):
        clock = FakeClock()
        store = EditSessionStore(ttl_seconds=60, clock=clock)
        store.begin("s1", ClientDraft(name="Ana"))

        clock.now = 50
        store.begin("s1", ClientDraft(name="Luis"))
        clock.now = 100

        assert store.current("s1").name == "Luis"

    def test_expired_slots_purged_on_begin(self):
        clock = FakeClock()
        store = EditSessionStore(ttl_seconds=60, clock=clock)
        for i in range(5):
            store.begin(f"s{i}", ClientDraft(name=f"n{i}"))

        clock.now = 61
        store.begin("fresh", ClientDraft(name="Eva"))

        assert store.purge_expired() == 0
        assert len(store) == 1
        assert store.current("fresh").name == "Eva"

    def test_purge_expired_counts_removed(self):
        clock = FakeClock()
        store = EditSessionStore(ttl_seconds=60, clock=clock)
        store.begin("old", ClientDraft())
        clock.now = 30
        store.begin("new", ClientDraft())

        clock.now = 70

        assert store.purge_expired() == 1
        assert store.current("new") is not None

    def test_store_is_bounded(self):
        clock = FakeClock()
        store = EditSessionStore(max_sessions=3, clock=clock)
        for i in range(10):
            clock.now = i
            store.begin(f"s{i}", ClientDraft(name=f"n{i}"))

        assert len(store) == 3
        assert store.current("s0") is None
        assert [store.current(f"s{i}").name for i in (7, 8, 9)] == ["n7", "n8", "n9"]

    def test_replacing_own_slot_does_not_evict_others(self):
        store = EditSessionStore(max_sessions=2)
        store.begin("s1", ClientDraft(name="Ana"))
        store.begin("s2", ClientDraft(name="Luis"))

        store.begin("s2", ClientDraft(name="Eva"))

        assert store.current("s1").name == "Ana"
        assert store.current("s2").name == "Eva"

    @pytest.mark.parametrize("kwargs", [{"ttl_seconds": 0}, {"max_sessions": 0}])
    def test_invalid_limits(self, kwargs):
        with pytest.raises(ValueError):
            EditSessionStore(**kwargs)


class TestEnsureSessionId:
    def test_mints_id_once(self):
        session = {}

        first = ensure_session_id(session)
        second = ensure_session_id(session)

        assert first
        assert first == second
        assert session[SESSION_ID_KEY] == first

    def test_distinct_sessions_get_distinct_ids(self):
        assert ensure_session_id({}) != ensure_session_id({})


class TestClientDraft:
    """Test draft binding and conversion."""

    def test_new_prefills_today(self):
        draft = ClientDraft.new()

        assert draft.id is None
        assert draft.created_at == date.today().isoformat()
        assert draft.is_existing is False

    def test_from_entity(self):
        client = Client(
            id=7, name="Ana", last_name="Diaz", email="ana@correo.com",
            created_at=date(2023, 5, 4), photo="abc_foto.jpg",
        )

        draft = ClientDraft.from_entity(client)

        assert draft == ClientDraft(
            id=7, name="Ana", last_name="Diaz", email="ana@correo.com",
            created_at="2023-05-04", photo="abc_foto.jpg",
        )
        assert draft.is_existing is True

    @pytest.mark.parametrize("client_id,expected", [(None, False), (0, False), (-3, False), (1, True)])
    def test_is_existing(self, client_id, expected):
        assert ClientDraft(id=client_id).is_existing is expected

    def test_bind_ignores_id_and_photo(self):
        draft = ClientDraft(id=3, name="Ana", photo="keep.jpg")

        bound = draft.bind({"name": "Luisa", "id": "99", "photo": "evil.jpg"})

        assert bound.name == "Luisa"
        assert bound.id == 3
        assert bound.photo == "keep.jpg"
        assert draft.name == "Ana"

    def test_bind_only_submitted_fields(self):
        draft = ClientDraft(name="Ana", email="ana@correo.com")

        bound = draft.bind({"last_name": "Diaz"})

        assert bound.name == "Ana"
        assert bound.email == "ana@correo.com"
        assert bound.last_name == "Diaz"

    def test_to_entity_drops_non_positive_id(self):
        form = ClientForm(name="Ana", last_name="Diaz", email="ana@correo.com", created_at=date(2024, 1, 1))

        entity = ClientDraft(id=0).to_entity(form)

        assert entity.id is None
        assert entity.photo is None


class TestClientForm:
    """Test form validation messages."""

    def test_valid(self):
        form = ClientForm.model_validate({
            "name": " Ana ",
            "last_name": "Diaz",
            "email": "ana@correo.com",
            "created_at": "2024-01-31",
        })

        assert form.name == "Ana"
        assert form.created_at == date(2024, 1, 31)

    def test_errors_per_field(self):
        with pytest.raises(ValidationError) as exc_info:
            ClientForm.model_validate({
                "name": "",
                "last_name": "   ",
                "email": "not-an-email",
                "created_at": "31/01/2024",
            })

        errors = form_errors(exc_info.value)

        assert errors == {
            "name": "no puede estar vacío",
            "last_name": "no puede estar vacío",
            "email": "debe ser una dirección de correo bien formada",
            "created_at": "debe ser una fecha con formato aaaa-mm-dd",
        }
