import json
import tempfile
import unittest
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from gatchacha.draw import build_prize_pool, serialize
from gatchacha.models import Base, SessionStateRecord, User
from gatchacha.session import GachaSession
from gatchacha.store import DatabaseStateStore, JsonFileStateStore, MemoryStateStore
from gatchacha.templates import TemplateRegistry


def _state(drawn: int = 1):
    pool = build_prize_pool("default", "Classic Draw", "classic", {"tier3": 1, "tier5": 2})
    for item in pool.items[:drawn]:
        item.drawn = True
    return serialize(pool, pool.items[:drawn])


class MemoryStateStoreTests(unittest.TestCase):
    def test_states_are_keyed_by_template(self):
        store = MemoryStateStore()
        self.assertIsNone(store.load("default"))
        store.save("default", _state(1))
        store.save("space", _state(2))
        self.assertEqual(len(store.load("default").history), 1)
        self.assertEqual(len(store.load("space").history), 2)
        store.clear("default")
        self.assertIsNone(store.load("default"))
        self.assertIsNotNone(store.load("space"))
        store.clear("missing")


class JsonFileStateStoreTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "state" / "gacha.json"

    def tearDown(self):
        self._tmp.cleanup()

    def test_save_and_load_across_instances(self):
        JsonFileStateStore(self.path).save("default", _state(2))
        loaded = JsonFileStateStore(self.path).load("default")
        self.assertEqual(sum(1 for i in loaded.items if i["drawn"]), 2)
        self.assertIsNone(JsonFileStateStore(self.path).load("space"))

    def test_document_maps_template_ids(self):
        store = JsonFileStateStore(self.path)
        store.save("default", _state(1))
        store.save("retro", _state(0))
        document = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(set(document), {"default", "retro"})
        self.assertEqual(set(document["default"]), {"items", "history"})

    def test_clear_removes_only_one_template(self):
        store = JsonFileStateStore(self.path)
        store.save("default", _state(1))
        store.save("retro", _state(1))
        store.clear("default")
        self.assertIsNone(store.load("default"))
        self.assertIsNotNone(store.load("retro"))

    def test_corrupt_file_is_treated_as_empty(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{not json", encoding="utf-8")
        store = JsonFileStateStore(self.path)
        with self.assertLogs("gatchacha.store", level="WARNING"):
            self.assertIsNone(store.load("default"))
        store.save("default", _state(1))
        self.assertIsNotNone(store.load("default"))

    def test_undecodable_file_is_treated_as_empty(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_bytes(b'{"default": "\xff\xfe"}')
        store = JsonFileStateStore(self.path)
        with self.assertLogs("gatchacha.store", level="WARNING"):
            self.assertIsNone(store.load("default"))
        with self.assertLogs("gatchacha.store", level="WARNING"):
            store.clear("default")

        session = GachaSession(TemplateRegistry.system(), store)
        with self.assertLogs("gatchacha.store", level="WARNING"):
            pool = session.select_template("default")
        self.assertTrue(all(not item.drawn for item in pool.items))

        session.draw()
        self.assertEqual(len(store.load("default").history), 1)

    def test_malformed_entry_is_ignored(self):
        self.path.parent.mkdir(parents=True)
        self.path.write_text(json.dumps({"default": {"items": "oops"}}), encoding="utf-8")
        with self.assertLogs("gatchacha.store", level="WARNING"):
            self.assertIsNone(JsonFileStateStore(self.path).load("default"))

    def test_no_temporary_files_are_left_behind(self):
        store = JsonFileStateStore(self.path)
        store.save("default", _state(1))
        store.save("default", _state(2))
        self.assertEqual([p.name for p in self.path.parent.iterdir()], ["gacha.json"])


class DatabaseStateStoreTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)
        self.Session = sessionmaker(bind=self.engine, future=True, expire_on_commit=False)

    def tearDown(self):
        self.engine.dispose()

    def test_anonymous_state_upserts_one_row(self):
        with self.Session.begin() as session:
            store = DatabaseStateStore(session)
            self.assertIsNone(store.load("default"))
            store.save("default", _state(1))
            store.save("default", _state(3))

        with self.Session() as session:
            rows = session.query(SessionStateRecord).all()
            self.assertEqual(len(rows), 1)
            self.assertIsNone(rows[0].user_id)
            self.assertEqual(len(DatabaseStateStore(session).load("default").history), 3)

    def test_states_are_separated_per_user(self):
        with self.Session.begin() as session:
            user = User(email="player@example.com")
            session.add(user)
            session.flush()
            DatabaseStateStore(session, user.id).save("default", _state(2))
            DatabaseStateStore(session).save("default", _state(1))
            user_id = user.id

        with self.Session() as session:
            mine = DatabaseStateStore(session, user_id).load("default")
            anonymous = DatabaseStateStore(session).load("default")
            self.assertEqual(len(mine.history), 2)
            self.assertEqual(len(anonymous.history), 1)

    def test_clear_deletes_the_row(self):
        with self.Session.begin() as session:
            store = DatabaseStateStore(session)
            store.save("space", _state(1))
            store.clear("space")
            self.assertIsNone(store.load("space"))
            store.clear("space")

    def test_garbage_row_loads_as_none(self):
        with self.Session.begin() as session:
            record = SessionStateRecord(template_id="default")
            record.items = [1, 2]
            session.add(record)
            session.flush()
            with self.assertLogs("gatchacha.store", level="WARNING"):
                self.assertIsNone(DatabaseStateStore(session).load("default"))


if __name__ == "__main__":
    unittest.main()
