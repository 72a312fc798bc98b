"""
Demo Data Manager
=================
In-memory quote store and login used by the demo application.
"""

import hmac
import itertools
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional
import structlog

from ..access.sessions import SessionManager
from ..cache.base import KeyValueCache
from ..errors import NotFoundError

logger = structlog.get_logger(__name__)

CURATOR = "curator@example.com"
ANONYMOUS_OWNER = "anonymous"
SORT_KEYS = ("content", "date", "author")


@dataclass(frozen=True)
class Quote:
    id: str
    content: str
    author: str
    date: str
    owner_user_id: str

    def to_dict(self) -> Dict[str, str]:
        data = asdict(self)
        data["ownerUserId"] = data.pop("owner_user_id")
        return data


SEED_QUOTES = [
    ("I think, therefore I am.", "René Descartes", "1637"),
    ("The only thing we have to fear is fear itself.", "Franklin D. Roosevelt", "March 4, 1933"),
    ("To be, or not to be, that is the question.", "William Shakespeare", "1600"),
    ("The unexamined life is not worth living.", "Socrates", "399 BCE"),
    ("Give me liberty, or give me death!", "Patrick Henry", "March 23, 1775"),
    ("Hisashiburi da na, Mugiwara.", "Crocodile", "800 PVC"),
    ("Injustice anywhere is a thread to justice everywhere.", "Martin Luther King Jr.", "April 16, 1963"),
    (
        "I went to the woods because I wished to live deliberately, to front only the "
        "essential facts of life, and see if I could not learn what it had to teach, and "
        "not, when I came to die, discover that I had not lived.",
        "Henry David Thoreau",
        "1854",
    ),
    ("All the world’s a stage, and all the men and women merely players.", "William Shakespeare", "1599"),
]


class DemoDataManager:
    """
    Quote storage plus a single-user login.

    Quotes are read through the cache under ``quote:<id>``.
    """

    def __init__(
        self,
        cache: KeyValueCache,
        sessions: SessionManager,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ):
        self.cache = cache
        self.sessions = sessions
        self._username = (username or "").lower()
        self._password = password or ""
        self._quotes: Dict[str, Quote] = {}
        for index, (content, author, date) in enumerate(SEED_QUOTES):
            self._quotes[str(index)] = Quote(str(index), content, author, date, CURATOR)
        self._ids = itertools.count(len(SEED_QUOTES))

    def login(self, username: str, password: str) -> Optional[str]:
        """Return a session token for valid credentials, None otherwise."""
        if not self._username or not self._password:
            return None
        username = username.lower()
        valid_user = hmac.compare_digest(username.encode("utf-8"), self._username.encode("utf-8"))
        valid_password = hmac.compare_digest(password.encode("utf-8"), self._password.encode("utf-8"))
        if not (valid_user and valid_password):
            logger.info("login_failed")
            return None
        return self.sessions.issue({"sub": username, "username": username})

    async def get_quote(self, quote_id: str) -> Optional[Dict[str, Any]]:
        cached = await self.cache.get(f"quote:{quote_id}")
        if cached:
            return cached
        quote = self._quotes.get(quote_id)
        if quote is None:
            return None
        data = quote.to_dict()
        await self.cache.set(f"quote:{quote_id}", data)
        return data

    def add_quote(self, content: str, author: str, date: str, owner: str) -> Dict[str, Any]:
        quote = Quote(str(next(self._ids)), content, author, date, owner)
        self._quotes[quote.id] = quote
        return quote.to_dict()

    async def delete_quote(self, quote_id: str) -> None:
        """
        Raises:
            NotFoundError: If no quote has this id
        """
        if self._quotes.pop(quote_id, None) is None:
            raise NotFoundError(f"No quote with ID {quote_id} found.")
        await self.cache.delete(f"quote:{quote_id}")

    def search_quotes(
        self,
        search_term: str,
        author: Optional[str] = None,
        sort_key: Optional[str] = None,
        ascending: bool = True,
    ) -> List[Dict[str, Any]]:
        term = search_term.lower()
        quotes = [
            q for q in self._quotes.values()
            if term in q.content.lower()
            and (author is None or q.author.lower() == author.lower())
        ]
        if sort_key in SORT_KEYS:
            quotes.sort(key=lambda q: getattr(q, sort_key), reverse=not ascending)
        return [q.to_dict() for q in quotes]
