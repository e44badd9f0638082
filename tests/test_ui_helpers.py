from ui_helpers import store_call


def test_store_result_passes_through(db):
    res = store_call(db.borrow_book, "student1", "B001")
    assert res["success"]
    assert res["message"] == "Borrowed!"
    assert not store_call(db.borrow_book, "student1", "NOPE")["success"]


def test_plain_return_value_is_wrapped(db):
    res = store_call(db.save)
    assert res["success"]
    assert res["result"] is None


def test_write_failure_becomes_failed_result(db, monkeypatch):
    def boom(path, obj):
        raise OSError("disk full")
    monkeypatch.setattr(db, "_write_blob", boom)

    res = store_call(db.borrow_book, "student1", "B001")
    assert not res["success"]
    assert "disk full" in res["message"]
