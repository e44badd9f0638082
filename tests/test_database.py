import logging
import pickle

import pytest

import database
from models import Admin, Student, Transaction, BORROWED, RETURNED


def _invariant_holds(db):
    return all(0 <= b.available_copies <= b.total_copies for b in db.list_books())


# ---------------- seeding / persistence ----------------
def test_first_run_seeds_defaults(db, tmp_path):
    assert len(db.list_books()) == 20
    assert isinstance(db.get_user("admin"), Admin)
    assert isinstance(db.get_user("student1"), Student)
    assert db.list_transactions() == []
    for name in ("books.data", "users.data", "history.data"):
        assert (tmp_path / name).exists()


def test_corrupt_file_is_reseeded(db, reload, tmp_path):
    db.delete_book("B001")
    (tmp_path / "books.data").write_bytes(b"not a pickle")
    db2 = reload()
    assert db2.get_book("B001") is not None
    assert len(db2.list_books()) == 20


def test_wrong_type_is_reseeded(db, reload, tmp_path):
    with open(tmp_path / "users.data", "wb") as f:
        pickle.dump(["not", "a", "dict"], f)
    db2 = reload()
    assert set(u.username for u in db2.list_users()) == {"admin", "student1"}


def test_corrupt_history_resets_only_history(db, reload, tmp_path, caplog):
    db.borrow_book("student1", "B001")
    (tmp_path / "history.data").write_bytes(b"garbage")

    with caplog.at_level(logging.WARNING, logger="database"):
        db2 = reload()
    assert db2.list_transactions() == []
    assert db2.get_book("B001").available_copies == 3
    assert db2.get_user("student1").borrowed_book_ids == ["B001"]
    assert any(r.levelno == logging.WARNING and "history" in r.getMessage() for r in caplog.records)


def test_missing_blob_logs_warning(tmp_path, settings, caplog):
    with caplog.at_level(logging.WARNING, logger="database"):
        database.LibraryDatabase(data_dir=tmp_path, settings=settings)
    warned = [r.getMessage() for r in caplog.records if r.levelno == logging.WARNING]
    assert len(warned) == 3


def test_failed_write_leaves_no_temp_file(db, reload, tmp_path, monkeypatch):
    def boom(obj, f):
        raise OSError("disk full")
    monkeypatch.setattr(database.pickle, "dump", boom)

    with pytest.raises(OSError):
        db.update_book("B001", "Clean Code (2nd ed.)", "Robert C. Martin", 4)
    assert list(tmp_path.glob("*.tmp")) == []

    monkeypatch.undo()
    assert reload().get_book("B001").title == "Clean Code"


def test_persistence_across_reload(db, reload):
    db.add_book("B100", "Refactoring", "Martin Fowler", 2)
    db.register_user("alice", "secret", "Alice", "Student")
    db.borrow_book("alice", "B100")

    db2 = reload()
    assert db2.get_book("B100").available_copies == 1
    assert db2.get_user("alice").borrowed_book_ids == ["B100"]
    assert [t.action for t in db2.list_transactions("alice")] == [BORROWED]


def test_explicit_save(db, reload):
    db.get_book("B002").title = "Effective Java, 3rd Edition"
    db.save()
    assert reload().get_book("B002").title == "Effective Java, 3rd Edition"


# ---------------- borrow / return ----------------
def test_borrow_and_return_scenario(db):
    assert (db.get_book("B001").available_copies, db.get_book("B001").total_copies) == (4, 4)

    res = db.borrow_book("student1", "B001")
    assert res["success"]
    assert db.get_book("B001").available_copies == 3
    assert db.get_user("student1").borrowed_book_ids == ["B001"]
    assert [t.action for t in db.list_transactions("student1")] == [BORROWED]

    res = db.return_book("student1", "B001")
    assert res["success"]
    assert db.get_book("B001").available_copies == 4
    assert db.get_user("student1").borrowed_book_ids == []
    history = db.list_transactions("student1")
    assert [t.action for t in history] == [BORROWED, RETURNED]
    assert all(t.book_title == "Clean Code" and t.book_id == "B001" for t in history)
    assert _invariant_holds(db)


def test_borrow_with_no_copies_changes_nothing(db):
    db.update_book("B015", "Deep Learning", "Ian Goodfellow", 1)
    db.register_user("bob", "pw", "Bob", "Student")
    assert db.borrow_book("bob", "B015")["success"]

    res = db.borrow_book("student1", "B015")
    assert not res["success"]
    assert res["message"] == "No copies available"
    assert db.get_book("B015").available_copies == 0
    assert db.get_user("student1").borrowed_book_ids == []
    assert db.list_transactions("student1") == []
    assert len(db.list_transactions()) == 1


def test_borrow_unknown_book_rejected(db):
    res = db.borrow_book("student1", "NOPE")
    assert not res["success"]
    assert db.get_user("student1").borrowed_book_ids == []


def test_admin_cannot_borrow(db):
    res = db.borrow_book("admin", "B001")
    assert not res["success"]
    assert db.get_book("B001").available_copies == 4


def test_same_book_twice(db):
    db.borrow_book("student1", "B001")
    db.borrow_book("student1", "B001")
    assert db.get_user("student1").borrowed_book_ids == ["B001", "B001"]
    db.return_book("student1", "B001")
    assert db.get_user("student1").borrowed_book_ids == ["B001"]
    assert db.get_book("B001").available_copies == 3


def test_return_not_borrowed_rejected(db):
    res = db.return_book("student1", "B001")
    assert not res["success"]
    assert db.list_transactions() == []


def test_return_deleted_book_rejected(db):
    db.borrow_book("student1", "B003")
    db.delete_book("B003")
    assert db.borrowed_books("student1") == [("B003", "(unknown)")]

    res = db.return_book("student1", "B003")
    assert not res["success"]
    assert db.get_user("student1").borrowed_book_ids == ["B003"]
    assert len(db.list_transactions()) == 1


def test_return_when_already_full_rejected(db):
    db.borrow_book("student1", "B002")
    # copies added back out of band leave nothing outstanding
    db.get_book("B002").available_copies = db.get_book("B002").total_copies
    res = db.return_book("student1", "B002")
    assert not res["success"]
    assert db.get_user("student1").borrowed_book_ids == ["B002"]
    assert _invariant_holds(db)


def test_history_keeps_title_at_transaction_time(db):
    db.borrow_book("student1", "B001")
    db.update_book("B001", "Clean Code (2nd ed.)", "Robert C. Martin", 4)
    db.return_book("student1", "B001")
    titles = [t.book_title for t in db.list_transactions("student1")]
    assert titles == ["Clean Code", "Clean Code (2nd ed.)"]


# ---------------- catalog administration ----------------
def test_add_book(db):
    res = db.add_book("B021", "Refactoring", "Martin Fowler", 3)
    assert res["success"]
    assert db.get_book("B021").available_copies == 3
    assert db.list_books()[-1].id == "B021"


def test_add_book_rejections(db):
    assert not db.add_book("B001", "Dup", "X", 1)["success"]
    assert not db.add_book("  ", "No id", "X", 1)["success"]
    assert not db.add_book("B099", "", "X", 1)["success"]
    assert not db.add_book("B099", "Neg", "X", -1)["success"]
    assert db.get_book("B001").title == "Clean Code"
    assert len(db.list_books()) == 20


def test_update_book_rederives_availability(db):
    db.borrow_book("student1", "B010")  # 4/5
    res = db.update_book("B010", "Python Crash Course", "Eric Matthes", 2)
    assert res["success"]
    assert (db.get_book("B010").available_copies, db.get_book("B010").total_copies) == (1, 2)
    assert _invariant_holds(db)


def test_update_unknown_book(db):
    assert not db.update_book("NOPE", "T", "A", 1)["success"]


def test_delete_book_is_unconditional(db):
    db.borrow_book("student1", "B004")
    assert db.delete_book("B004")["success"]
    assert db.get_book("B004") is None
    assert not db.delete_book("B004")["success"]


def test_search_books(db):
    assert [b.id for b in db.search_books("tanenbaum")] == ["B008", "B019"]
    assert [b.id for b in db.search_books("b015")] == ["B015"]
    assert len(db.search_books("")) == 20
    assert db.search_books("zzz") == []


# ---------------- users ----------------
def test_register_then_login(db):
    res = db.register_user("carol", "s3cret", "Carol", "Student")
    assert res["success"]
    user = db.verify_user("carol", "s3cret")
    assert isinstance(user, Student)
    assert db.verify_user("carol", "wrong") is None


def test_register_admin_role(db):
    db.register_user("boss", "pw", "Boss", "Admin")
    assert isinstance(db.get_user("boss"), Admin)


def test_register_duplicate_rejected(db):
    res = db.register_user("student1", "other", "Someone", "Student")
    assert not res["success"]
    assert db.get_user("student1").name == "Student One"
    assert db.verify_user("student1", "pass") is not None


def test_register_requires_all_fields(db):
    assert not db.register_user("dave", "", "Dave", "Student")["success"]
    assert not db.register_user("", "pw", "Dave", "Student")["success"]
    assert not db.register_user("dave", "pw", "Dave", "Librarian")["success"]
    assert db.get_user("dave") is None


def test_seeded_credentials(db):
    assert isinstance(db.verify_user("admin", "admin"), Admin)
    assert isinstance(db.verify_user("student1", "pass"), Student)
    assert db.verify_user("ghost", "x") is None


def test_reserved_admin_cannot_be_deleted(db):
    res = db.delete_user("admin")
    assert not res["success"]
    assert db.get_user("admin") is not None


def test_delete_other_users(db):
    db.register_user("boss", "pw", "Boss", "Admin")
    assert db.delete_user("boss")["success"]
    assert db.delete_user("student1")["success"]
    assert db.get_user("student1") is None
    assert not db.delete_user("student1")["success"]


def test_change_password(db, reload):
    assert not db.change_user_password("student1", "wrong", "new")["success"]
    assert db.change_user_password("student1", "pass", "new")["success"]
    db2 = reload()
    assert db2.verify_user("student1", "new") is not None
    assert db2.verify_user("student1", "pass") is None


def test_admin_reset_password(db):
    assert db.admin_reset_password("admin", "student1", "reset")["success"]
    assert db.verify_user("student1", "reset") is not None
    assert not db.admin_reset_password("admin", "ghost", "x")["success"]


# ---------------- analytics ----------------
def test_analytics(db):
    db.borrow_book("student1", "B001")
    db.borrow_book("student1", "B002")
    db.return_book("student1", "B001")

    totals = db.analytics_totals()
    assert totals["books"] == 20
    assert totals["on_loan"] == 1
    assert totals["users"] == 2
    assert totals["students"] == 1
    assert totals["transactions"] == 3
    assert db.action_counts() == {BORROWED: 2, RETURNED: 1}
    assert db.action_counts("admin") == {BORROWED: 0, RETURNED: 0}


def test_add_transaction_appends_and_persists(db, reload):
    db.add_transaction(Transaction("student1", "Clean Code", BORROWED, book_id="B001"))
    db.add_transaction(Transaction("admin", "Deep Learning", RETURNED, book_id="B015"))
    history = reload().list_transactions()
    assert [(t.username, t.action) for t in history] == [("student1", BORROWED), ("admin", RETURNED)]
    assert len(db.list_transactions("student1")) == 1
