"""Document and tag collections for Folio.

Key classes:
- DocumentCollection: Documents in listing order, with filters and pagination.
- TagCollection: Tag name to documents, with a unique URL slug per tag.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence

from .content import Document
from .utils import slugify


class DocumentCollection(Sequence[Document]):
    """The Site: documents in listing order, newest first.

    Ties on date are broken by slug and then source path, so the order is
    total and does not depend on filesystem walk order.
    """

    def __init__(self, documents: Iterable[Document], presorted: bool = False):
        docs = list(documents)
        if not presorted:
            # Two stable passes: newest date first, then ascending slug/path within a day.
            docs.sort(key=lambda d: (d.slug, d.path.as_posix()))
            docs.sort(key=lambda d: d.date, reverse=True)
        self._documents = docs

    def __iter__(self) -> Iterator[Document]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return DocumentCollection(self._documents[item], presorted=True)
        return self._documents[item]

    def group(self, name: str) -> DocumentCollection:
        return DocumentCollection((d for d in self._documents if d.group == name), presorted=True)

    def with_tag(self, tag: str) -> DocumentCollection:
        return DocumentCollection((d for d in self._documents if tag in d.tags), presorted=True)

    def drafts(self) -> DocumentCollection:
        return DocumentCollection((d for d in self._documents if d.draft), presorted=True)

    def published(self) -> DocumentCollection:
        return DocumentCollection((d for d in self._documents if not d.draft), presorted=True)

    def chronological(self) -> DocumentCollection:
        """Oldest first."""
        return DocumentCollection(reversed(self._documents), presorted=True)

    def latest(self, count: int = 5) -> DocumentCollection:
        return self[:count]

    def paginate(self, per_page: int) -> list[DocumentCollection]:
        """Split into pages of ``per_page`` documents; 0 means one page."""
        if per_page <= 0 or not self._documents:
            return [self]
        return [self[i : i + per_page] for i in range(0, len(self._documents), per_page)]

    def by_url(self) -> dict[str, Document]:
        return {d.url: d for d in self._documents}

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"DocumentCollection({len(self._documents)} documents)"


class TagCollection(Mapping[str, DocumentCollection]):
    """Mapping of tag name to its documents, with a URL slug per tag.

    Tags are kept in case-insensitive alphabetical order. Tags whose slugs
    collide (``C++`` and ``c``) get numbered slugs in that order.
    """

    def __init__(self, documents: Iterable[Document]):
        grouped: dict[str, list[Document]] = {}
        for doc in documents:
            for tag in doc.tags:
                grouped.setdefault(tag, []).append(doc)
        self._mapping = {
            tag: DocumentCollection(grouped[tag])
            for tag in sorted(grouped, key=lambda t: (t.lower(), t))
        }
        self._slugs: dict[str, str] = {}
        taken: set[str] = set()
        for tag in self._mapping:
            base = slugify(tag, default="tag")
            slug, n = base, 0
            while slug in taken:
                n += 1
                slug = f"{base}-{n}"
            taken.add(slug)
            self._slugs[tag] = slug

    def __getitem__(self, key: str) -> DocumentCollection:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def slug(self, tag: str) -> str:
        return self._slugs[tag]

    def url(self, tag: str) -> str:
        return f"/tags/{self._slugs[tag]}/"

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TagCollection({len(self._mapping)} tags)"
