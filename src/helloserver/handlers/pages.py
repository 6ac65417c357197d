"""
=============================================================================
PAGE HANDLER
=============================================================================

Turns raw request bytes into a response by choosing one of exactly two
pages:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   raw request bytes                                                  │
    │          │                                                           │
    │          ▼                                                           │
    │   select()    root request? ──yes──► 200 OK        + index.html      │
    │          │                  └──no──► 404 Not Found + 404.html        │
    │          ▼                                                           │
    │   load()      read the whole file as UTF-8 text, every time          │
    │          │                                                           │
    │          ▼                                                           │
    │   HTTPResponse(status, body)                                         │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

The file name never comes from the request. Both names are fixed by the
configuration, so there is no path traversal surface.

Pages are read on every request. Editing index.html on disk changes the
next response without a restart.

=============================================================================
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from ..config import ServerConfig
from ..http.request import matches_root_prefix, is_root_request
from ..http.response import HTTPResponse
from ..http.status_codes import HTTPStatus


logger = logging.getLogger(__name__)

# Upper-case reason phrase legacy clients expect on the 404 status line
LEGACY_NOT_FOUND_REASON = "NOT FOUND"


class PageLoadError(Exception):
    """
    Raised when a page cannot be read.

    Covers a missing file, a permission problem and content that is not
    valid UTF-8. The underlying OSError/UnicodeDecodeError is chained.
    """

    def __init__(self, message: str, path: Path):
        super().__init__(message)
        self.path = path


@dataclass(frozen=True)
class PageChoice:
    """Outcome of classifying a request."""
    status: HTTPStatus
    filename: str

    @property
    def is_root(self) -> bool:
        return self.status == HTTPStatus.OK


class PageHandler:
    """
    Classifies requests and builds the matching page response.

    Usage:
        handler = PageHandler.from_config(config)
        response = handler.respond(raw_bytes)
        conn.send_response(response.to_bytes())
    """

    def __init__(
        self,
        root_dir,
        index_file: str = "index.html",
        not_found_file: str = "404.html",
        legacy: bool = False,
    ):
        """
        Args:
            root_dir: Directory holding both pages.
            index_file: Page for the root request.
            not_found_file: Page for every other request.
            legacy: Use the literal prefix match and the upper-case
                    "NOT FOUND" reason phrase.

        Raises:
            ValueError: If root_dir is not a directory, or a page name
                        points outside it.
        """
        self.root_dir = Path(root_dir).resolve()
        self.index_file = index_file
        self.not_found_file = not_found_file
        self.legacy = legacy

        if not self.root_dir.is_dir():
            raise ValueError(f"Pages directory does not exist: {root_dir}")

        for name in (index_file, not_found_file):
            try:
                (self.root_dir / name).resolve().relative_to(self.root_dir)
            except ValueError:
                raise ValueError(f"Page {name!r} is outside {self.root_dir}") from None

    @classmethod
    def from_config(cls, config: ServerConfig) -> "PageHandler":
        return cls(
            root_dir=config.pages_dir,
            index_file=config.index_file,
            not_found_file=config.not_found_file,
            legacy=config.legacy,
        )

    def select(self, raw: bytes) -> PageChoice:
        """
        Decide which page answers this request.

        Legacy mode compares the leading bytes against
        ``GET / HTTP/1.1\\r\\n``; standard mode parses the request line.
        Either way, anything that is not a root request gets the
        not-found page.
        """
        if self.legacy:
            root = matches_root_prefix(raw)
        else:
            root = is_root_request(raw)

        if root:
            return PageChoice(HTTPStatus.OK, self.index_file)
        return PageChoice(HTTPStatus.NOT_FOUND, self.not_found_file)

    def load(self, filename: str) -> str:
        """
        Read a page's entire contents.

        Newlines are returned untranslated so the body matches the file
        byte for byte.

        Raises:
            PageLoadError: If the file is missing, unreadable or not UTF-8.
        """
        path = self.root_dir / filename
        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                return f.read()
        except FileNotFoundError as e:
            raise PageLoadError(f"Page not found on disk: {path}", path) from e
        except UnicodeDecodeError as e:
            raise PageLoadError(f"Page is not valid UTF-8: {path}", path) from e
        except OSError as e:
            raise PageLoadError(f"Cannot read page {path}: {e.strerror}", path) from e

    def respond(self, raw: bytes) -> HTTPResponse:
        """
        Classify ``raw``, load the chosen page and compose the response.

        Raises:
            PageLoadError: Propagated from load(). No fallback page is used.
        """
        choice = self.select(raw)
        contents = self.load(choice.filename)

        reason = None
        if self.legacy and not choice.is_root:
            reason = LEGACY_NOT_FOUND_REASON

        logger.debug(f"Selected {choice.filename} ({int(choice.status)})")
        return HTTPResponse(status=choice.status, body=contents, reason=reason)
