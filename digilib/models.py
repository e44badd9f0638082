# models.py
"""
Record types for the digital library.

Books are keyed by id, users by username. Students carry the list of book ids
they currently hold; admins carry nothing extra. Transactions are frozen log
entries that copy the username and book title at the time of the action, so
renaming a book later does not rewrite history.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

BORROWED = "Borrowed"
RETURNED = "Returned"

ROLE_ADMIN = "Admin"
ROLE_STUDENT = "Student"
ROLES = (ROLE_STUDENT, ROLE_ADMIN)


@dataclass
class Book:
    id: str
    title: str
    author: str
    total_copies: int
    available_copies: Optional[int] = None

    def __post_init__(self):
        if self.total_copies < 0:
            raise ValueError("Total copies cannot be negative.")
        if self.available_copies is None:
            self.available_copies = self.total_copies
        if not 0 <= self.available_copies <= self.total_copies:
            raise ValueError("Available copies must be between 0 and total copies.")

    @property
    def is_available(self) -> bool:
        return self.available_copies > 0

    @property
    def copies_on_loan(self) -> int:
        return self.total_copies - self.available_copies

    def set_total_copies(self, copies: int) -> None:
        """Change the owned count; availability moves by the same delta, never below 0."""
        if copies < 0:
            raise ValueError("Total copies cannot be negative.")
        diff = copies - self.total_copies
        self.total_copies = copies
        self.available_copies = max(self.available_copies + diff, 0)

    def borrow(self) -> bool:
        if self.available_copies > 0:
            self.available_copies -= 1
            return True
        return False

    def give_back(self) -> bool:
        if self.available_copies < self.total_copies:
            self.available_copies += 1
            return True
        return False


@dataclass
class User:
    username: str
    password_hash: bytes
    name: str

    @property
    def role(self) -> str:
        raise NotImplementedError


@dataclass
class Admin(User):
    @property
    def role(self) -> str:
        return ROLE_ADMIN


@dataclass
class Student(User):
    borrowed_book_ids: List[str] = field(default_factory=list)

    @property
    def role(self) -> str:
        return ROLE_STUDENT

    def borrow_book(self, book_id: str) -> None:
        self.borrowed_book_ids.append(book_id)

    def return_book(self, book_id: str) -> bool:
        # removes only the first match; duplicates are legitimate
        try:
            self.borrowed_book_ids.remove(book_id)
        except ValueError:
            return False
        return True


@dataclass(frozen=True)
class Transaction:
    username: str
    book_title: str
    action: str
    timestamp: datetime = field(default_factory=datetime.now)
    book_id: Optional[str] = None

    def formatted_date(self, fmt: str) -> str:
        return self.timestamp.strftime(fmt)


# ---------------- seed data ----------------
SEED_BOOKS = [
    ("B001", "Clean Code", "Robert C. Martin", 4),
    ("B002", "Effective Java", "Joshua Bloch", 3),
    ("B003", "Design Patterns", "Erich Gamma", 3),
    ("B004", "Introduction to Algorithms", "Thomas H. Cormen", 5),
    ("B005", "The Pragmatic Programmer", "Andrew Hunt", 4),
    ("B006", "Artificial Intelligence: A Modern Approach", "Stuart Russell", 3),
    ("B007", "Operating System Concepts", "Abraham Silberschatz", 4),
    ("B008", "Computer Networks", "Andrew S. Tanenbaum", 4),
    ("B009", "Database System Concepts", "Henry F. Korth", 4),
    ("B010", "Python Crash Course", "Eric Matthes", 5),
    ("B011", "Head First Java", "Kathy Sierra", 5),
    ("B012", "C Programming Language", "Brian W. Kernighan", 4),
    ("B013", "JavaScript: The Good Parts", "Douglas Crockford", 3),
    ("B014", "You Don't Know JS", "Kyle Simpson", 3),
    ("B015", "Deep Learning", "Ian Goodfellow", 2),
    ("B016", "Machine Learning Yearning", "Andrew Ng", 3),
    ("B017", "Introduction to Machine Learning", "Ethem Alpaydin", 3),
    ("B018", "Data Structures & Algorithms Made Easy", "Narasimha Karumanchi", 5),
    ("B019", "Modern Operating Systems", "Andrew S. Tanenbaum", 3),
    ("B020", "System Design Interview", "Alex Xu", 4),
]

# (role, username, password, display name)
SEED_USERS = [
    (ROLE_ADMIN, "admin", "admin", "Library Admin"),
    (ROLE_STUDENT, "student1", "pass", "Student One"),
]


def seed_books():
    return [Book(bid, title, author, copies) for bid, title, author, copies in SEED_BOOKS]
