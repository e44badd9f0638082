# database.py
"""
File-backed store for books, users and the transaction history.

Each collection lives in memory and is written to disk as one pickled
snapshot after every change that touches it. A missing or unreadable
snapshot is replaced by the seed data.
"""

import logging
import os
import pickle
from datetime import datetime
from pathlib import Path

import bcrypt

from models import (
    Admin, Book, Student, Transaction, BORROWED, RETURNED, ROLE_ADMIN, ROLE_STUDENT, ROLES,
    SEED_USERS, seed_books,
)
from settings import settings as default_settings

logger = logging.getLogger(__name__)


def hash_password(password_plain, rounds=12):
    return bcrypt.hashpw(password_plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds))


def check_password(password_plain, hashed):
    try:
        return bcrypt.checkpw(password_plain.encode("utf-8"), hashed)
    except (TypeError, ValueError):
        return False


def _fail(message):
    logger.debug("rejected: %s", message)
    return {"success": False, "message": message}


class LibraryDatabase:
    def __init__(self, data_dir=None, settings=None, clock=datetime.now):
        self.settings = settings or default_settings
        self.data_dir = Path(data_dir or self.settings.data_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.books_path = self.data_dir / self.settings.books_file
        self.users_path = self.data_dir / self.settings.users_file
        self.history_path = self.data_dir / self.settings.history_file
        self.clock = clock

        self.books = {}
        self.users = {}
        self.history = []
        self.load()

    # ---------------- persistence ----------------
    def _read_blob(self, path, expected_type):
        with open(path, "rb") as f:
            obj = pickle.load(f)
        if not isinstance(obj, expected_type):
            raise TypeError(f"{path.name} holds {type(obj).__name__}, expected {expected_type.__name__}")
        return obj

    def _write_blob(self, path, obj):
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            with open(tmp_path, "wb") as f:
                pickle.dump(obj, f)
            os.replace(tmp_path, path)
        except OSError:
            logger.exception("could not write %s", path)
            if tmp_path.is_file():
                tmp_path.unlink()
            raise

    def load(self):
        try:
            self.books = self._read_blob(self.books_path, dict)
        except Exception as e:
            logger.warning("books not loaded (%s); seeding default catalog", e)
            self.seed_books()
            self.save_books()

        try:
            self.users = self._read_blob(self.users_path, dict)
        except Exception as e:
            logger.warning("users not loaded (%s); seeding default accounts", e)
            self.seed_users()
            self.save_users()

        try:
            self.history = self._read_blob(self.history_path, list)
        except Exception as e:
            logger.warning("history not loaded (%s); starting empty", e)
            self.history = []
            self.save_history()

    def save_books(self):
        self._write_blob(self.books_path, self.books)

    def save_users(self):
        self._write_blob(self.users_path, self.users)

    def save_history(self):
        self._write_blob(self.history_path, self.history)

    def save(self):
        self.save_books()
        self.save_users()
        self.save_history()
        logger.info("saved %d books, %d users, %d transactions",
                    len(self.books), len(self.users), len(self.history))

    def seed_books(self):
        self.books = {b.id: b for b in seed_books()}

    def seed_users(self):
        self.users = {}
        for role, username, password, name in SEED_USERS:
            self.users[username] = self._make_user(role, username, password, name)

    def _make_user(self, role, username, password, name):
        cls = Admin if role == ROLE_ADMIN else Student
        return cls(username, hash_password(password, self.settings.bcrypt_rounds), name)

    # ---------------- books ----------------
    def get_book(self, book_id):
        return self.books.get(book_id)

    def list_books(self):
        return list(self.books.values())

    def search_books(self, text=None):
        q = (text or "").strip().lower()
        if not q:
            return self.list_books()
        return [b for b in self.books.values()
                if q in b.id.lower() or q in b.title.lower() or q in b.author.lower()]

    def upsert_book(self, book):
        self.books[book.id] = book
        self.save_books()

    def add_book(self, book_id, title, author, copies=1, actor=None):
        book_id = (book_id or "").strip()
        title = (title or "").strip()
        if not book_id or not title:
            return _fail("Book ID and title are required.")
        if book_id in self.books:
            return _fail(f"Book {book_id} already exists.")
        try:
            book = Book(book_id, title, (author or "").strip(), int(copies))
        except ValueError as e:
            return _fail(str(e))
        self.upsert_book(book)
        logger.info("%s added book %s (%s)", actor or "unknown", book_id, title)
        return {"success": True, "message": "Book added.", "book": book}

    def update_book(self, book_id, title, author, total_copies, actor=None):
        book = self.books.get(book_id)
        if not book:
            return _fail("Book not found.")
        title = (title or "").strip()
        if not title:
            return _fail("Title is required.")
        try:
            book.set_total_copies(int(total_copies))
        except ValueError as e:
            return _fail(str(e))
        book.title = title
        book.author = (author or "").strip()
        self.upsert_book(book)
        logger.info("%s updated book %s", actor or "unknown", book_id)
        return {"success": True, "message": "Book updated.", "book": book}

    def delete_book(self, book_id, actor=None):
        # students still holding this id keep a dangling entry
        book = self.books.pop(book_id, None)
        if not book:
            return _fail("Book not found.")
        self.save_books()
        logger.info("%s deleted book %s (%s)", actor or "unknown", book_id, book.title)
        return {"success": True, "message": f"Book {book_id} deleted."}

    # ---------------- users ----------------
    def get_user(self, username):
        return self.users.get(username)

    def list_users(self):
        return list(self.users.values())

    def upsert_user(self, user):
        self.users[user.username] = user
        self.save_users()

    def register_user(self, username, password, name, role=ROLE_STUDENT):
        username = (username or "").strip()
        name = (name or "").strip()
        if not username or not password or not name:
            return _fail("Fill all fields!")
        if role not in ROLES:
            return _fail(f"Unknown role '{role}'.")
        if username in self.users:
            return _fail("Username exists!")
        user = self._make_user(role, username, password, name)
        self.upsert_user(user)
        logger.info("registered %s user '%s'", role, username)
        return {"success": True, "message": "Registered successfully!", "user": user}

    def delete_user(self, username, actor=None):
        if username == self.settings.reserved_admin:
            return _fail("Cannot delete admin!")
        if username not in self.users:
            return _fail("User not found.")
        del self.users[username]
        self.save_users()
        logger.info("%s deleted user '%s'", actor or "unknown", username)
        return {"success": True, "message": f"User {username} deleted."}

    def verify_user(self, username, password_plain):
        user = self.users.get(username)
        if not user:
            return None
        return user if check_password(password_plain, user.password_hash) else None

    def change_user_password(self, username, old_password_plain, new_password_plain):
        if not new_password_plain:
            return _fail("New password is required.")
        user = self.verify_user(username, old_password_plain)
        if not user:
            return _fail("Current password incorrect.")
        user.password_hash = hash_password(new_password_plain, self.settings.bcrypt_rounds)
        self.save_users()
        logger.info("user '%s' changed their password", username)
        return {"success": True, "message": "Password changed."}

    def admin_reset_password(self, admin_username, target_username, new_password_plain):
        user = self.users.get(target_username)
        if not user:
            return _fail("User not found.")
        if not new_password_plain:
            return _fail("New password is required.")
        user.password_hash = hash_password(new_password_plain, self.settings.bcrypt_rounds)
        self.save_users()
        logger.info("admin '%s' reset password for '%s'", admin_username, target_username)
        return {"success": True, "message": f"Password for {target_username} reset."}

    # ---------------- transactions ----------------
    def add_transaction(self, transaction):
        self.history.append(transaction)
        self.save_history()

    def list_transactions(self, username=None):
        if username is None:
            return list(self.history)
        return [t for t in self.history if t.username == username]

    # ---------------- loans ----------------
    def _get_student(self, username):
        user = self.users.get(username)
        return user if isinstance(user, Student) else None

    def borrow_book(self, username, book_id):
        student = self._get_student(username)
        if not student:
            return _fail("Only students can borrow books.")
        book = self.books.get(book_id)
        if not book:
            return _fail("Book not found")
        if not book.borrow():
            return _fail("No copies available")
        student.borrow_book(book_id)
        self.history.append(Transaction(username, book.title, BORROWED, self.clock(), book_id))
        self.save()
        logger.info("'%s' borrowed %s (%d/%d left)", username, book_id,
                    book.available_copies, book.total_copies)
        return {"success": True, "message": "Borrowed!", "book": book}

    def return_book(self, username, book_id):
        student = self._get_student(username)
        if not student:
            return _fail("Only students can return books.")
        if book_id not in student.borrowed_book_ids:
            return _fail(f"You have not borrowed {book_id}.")
        book = self.books.get(book_id)
        if not book or not book.give_back():
            return _fail("Unable to return (book record missing or max copies reached).")
        student.return_book(book_id)
        self.history.append(Transaction(username, book.title, RETURNED, self.clock(), book_id))
        self.save()
        logger.info("'%s' returned %s (%d/%d available)", username, book_id,
                    book.available_copies, book.total_copies)
        return {"success": True, "message": "Returned!", "book": book}

    def borrowed_books(self, username):
        student = self._get_student(username)
        if not student:
            return []
        rows = []
        for bid in student.borrowed_book_ids:
            book = self.books.get(bid)
            rows.append((bid, book.title if book else "(unknown)"))
        return rows

    # ---------------- analytics helpers ----------------
    def analytics_totals(self):
        books = self.books.values()
        return {
            "books": len(self.books),
            "copies": sum(b.total_copies for b in books),
            "on_loan": sum(b.copies_on_loan for b in books),
            "users": len(self.users),
            "students": sum(1 for u in self.users.values() if isinstance(u, Student)),
            "transactions": len(self.history),
        }

    def action_counts(self, username=None):
        counts = {BORROWED: 0, RETURNED: 0}
        for t in self.list_transactions(username):
            counts[t.action] = counts.get(t.action, 0) + 1
        return counts
