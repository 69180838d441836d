"""Test diretti del layer dati (senza HTTP)."""
from __future__ import annotations

import pytest
from sqlalchemy.exc import NoResultFound, OperationalError

from medix_api import services


@pytest.fixture
def ana(db) -> dict:
    return services.create_user(db, "Ana", "ana@x.com")


class TestDefaultCategory:

    def test_fetch_or_create_is_idempotent(self, db):
        with db.session() as s:
            first = services.ensure_default_category(s)
            second = services.ensure_default_category(s)

        assert first.ok and second.ok
        assert first.category_id == second.category_id
        assert first.error is None

    def test_failure_is_reported_not_raised(self, db, monkeypatch):
        def boom(s, name):
            raise OperationalError("INSERT", {}, Exception("tabella bloccata"))

        monkeypatch.setattr(services, "_fetch_or_create_category", boom)

        with db.session() as s:
            lookup = services.ensure_default_category(s)

        assert lookup.ok is False
        assert lookup.category_id is None
        assert "tabella bloccata" in lookup.error


class TestTaskServices:

    def test_create_and_list(self, db, ana):
        services.create_task(db, ana["id"], "primo")
        services.create_task(db, ana["id"], "secondo", "con descrizione")

        tasks = services.list_tasks_for_user(db, ana["id"])
        assert [t["title"] for t in tasks] == ["secondo", "primo"]
        assert tasks[0]["description"] == "con descrizione"

    def test_update_ignores_unknown_keys(self, db, ana):
        t = services.create_task(db, ana["id"], "primo")

        updated = services.update_task(db, t["id"], {"userId": 999, "id": 5, "completed": True})
        assert updated["id"] == t["id"]
        assert updated["userId"] == ana["id"]
        assert updated["completed"] is True

    def test_update_missing_raises(self, db):
        with pytest.raises(NoResultFound):
            services.update_task(db, 404, {"title": "x"})

    def test_delete_missing_raises(self, db):
        with pytest.raises(NoResultFound):
            services.delete_task(db, 404)

    def test_delete(self, db, ana):
        t = services.create_task(db, ana["id"], "via")
        services.delete_task(db, t["id"])
        assert services.list_tasks_for_user(db, ana["id"]) == []
