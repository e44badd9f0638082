import pytest

from models import Admin, Book, Student, Transaction, BORROWED, ROLE_ADMIN, ROLE_STUDENT, seed_books


def test_new_book_starts_fully_available():
    book = Book("X1", "Title", "Author", 3)
    assert book.available_copies == 3
    assert book.is_available


def test_negative_copies_rejected():
    with pytest.raises(ValueError):
        Book("X1", "Title", "Author", -1)
    book = Book("X1", "Title", "Author", 2)
    with pytest.raises(ValueError):
        book.set_total_copies(-5)
    assert book.total_copies == 2


def test_borrow_until_empty():
    book = Book("X1", "Title", "Author", 2)
    assert book.borrow() is True
    assert book.borrow() is True
    assert book.borrow() is False
    assert book.available_copies == 0
    assert not book.is_available


def test_give_back_stops_at_total():
    book = Book("X1", "Title", "Author", 1)
    assert book.give_back() is False
    book.borrow()
    assert book.give_back() is True
    assert book.available_copies == 1


def test_set_total_copies_shifts_availability():
    book = Book("X1", "Title", "Author", 4)
    book.borrow()  # 3/4
    book.set_total_copies(6)
    assert (book.available_copies, book.total_copies) == (5, 6)
    book.set_total_copies(2)
    assert (book.available_copies, book.total_copies) == (1, 2)


def test_set_total_copies_clamps_at_zero():
    book = Book("X1", "Title", "Author", 3)
    book.borrow(); book.borrow(); book.borrow()  # 0/3
    book.set_total_copies(1)
    assert book.available_copies == 0
    assert book.total_copies == 1
    assert book.copies_on_loan == 1


def test_roles():
    assert Admin("a", b"x", "A").role == ROLE_ADMIN
    assert Student("s", b"x", "S").role == ROLE_STUDENT


def test_student_borrowed_list_allows_duplicates():
    s = Student("s", b"x", "S")
    s.borrow_book("B001"); s.borrow_book("B001"); s.borrow_book("B002")
    assert s.return_book("B001") is True
    assert s.borrowed_book_ids == ["B001", "B002"]
    assert s.return_book("B999") is False


def test_transaction_is_frozen():
    t = Transaction("student1", "Clean Code", BORROWED, book_id="B001")
    with pytest.raises(AttributeError):
        t.book_title = "Other"


def test_seed_catalog():
    books = seed_books()
    assert len(books) == 20
    assert books[0].id == "B001"
    assert (books[0].title, books[0].total_copies, books[0].available_copies) == ("Clean Code", 4, 4)
    assert len({b.id for b in books}) == 20
