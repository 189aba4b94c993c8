"""Curated example queries for content snapshots.

Snapshots hold the tables ``posts``, ``medias``, ``tags``, ``post_tags``,
``links`` and ``post_media``. Order and identifiers are stable.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ExampleQuery:
    """A named, pre-written query."""

    id: str
    name: str
    text: str
    description: str


EXAMPLE_QUERIES: tuple[ExampleQuery, ...] = (
    ExampleQuery(
        id="list-tables",
        name="List tables",
        text="SELECT name, type FROM sqlite_master\nWHERE type IN ('table', 'view')\nORDER BY name;",
        description="All tables and views in the snapshot.",
    ),
    ExampleQuery(
        id="recent-posts",
        name="Recent posts",
        text=(
            "SELECT _slug, _title, _created, _wordCount\n"
            "FROM posts\n"
            "ORDER BY _created DESC\n"
            "LIMIT 20;"
        ),
        description="The twenty most recently created posts.",
    ),
    ExampleQuery(
        id="word-count-stats",
        name="Word count statistics",
        text=(
            "SELECT COUNT(*) AS posts,\n"
            "       SUM(_wordCount) AS total_words,\n"
            "       ROUND(AVG(_wordCount), 1) AS avg_words,\n"
            "       MAX(_wordCount) AS longest\n"
            "FROM posts;"
        ),
        description="Post count and word count totals, average and maximum.",
    ),
    ExampleQuery(
        id="posts-by-type",
        name="Posts by type",
        text="SELECT _type, COUNT(*) AS posts\nFROM posts\nGROUP BY _type\nORDER BY posts DESC;",
        description="How many posts exist for each content type.",
    ),
    ExampleQuery(
        id="popular-tags",
        name="Popular tags",
        text=(
            "SELECT t.tag, COUNT(pt.post_id) AS posts\n"
            "FROM tags t\n"
            "LEFT JOIN post_tags pt ON pt.tag_id = t.id\n"
            "GROUP BY t.id\n"
            "ORDER BY posts DESC, t.tag\n"
            "LIMIT 25;"
        ),
        description="Tags ranked by the number of posts using them.",
    ),
    ExampleQuery(
        id="most-linked",
        name="Most linked posts",
        text=(
            "SELECT p._slug, p._title, COUNT(l.source_id) AS backlinks\n"
            "FROM posts p\n"
            "JOIN links l ON l.target_id = p._id\n"
            "GROUP BY p._id\n"
            "ORDER BY backlinks DESC\n"
            "LIMIT 20;"
        ),
        description="Posts with the most incoming links from other posts.",
    ),
    ExampleQuery(
        id="orphan-posts",
        name="Orphan posts",
        text=(
            "SELECT p._slug, p._title\n"
            "FROM posts p\n"
            "WHERE NOT EXISTS (SELECT 1 FROM links l WHERE l.target_id = p._id)\n"
            "ORDER BY p._slug;"
        ),
        description="Posts that no other post links to.",
    ),
    ExampleQuery(
        id="media-by-type",
        name="Media by type",
        text=(
            "SELECT mime_type, COUNT(*) AS files, SUM(filesize) AS total_bytes\n"
            "FROM medias\n"
            "GROUP BY mime_type\n"
            "ORDER BY total_bytes DESC;"
        ),
        description="Media file counts and total size per MIME type.",
    ),
    ExampleQuery(
        id="posts-with-media",
        name="Posts with media",
        text=(
            "SELECT p._slug, COUNT(pm.media_id) AS media\n"
            "FROM posts p\n"
            "JOIN post_media pm ON pm.post_id = p._id\n"
            "GROUP BY p._id\n"
            "ORDER BY media DESC\n"
            "LIMIT 20;"
        ),
        description="Posts embedding the most media files.",
    ),
    ExampleQuery(
        id="post-columns",
        name="Post columns",
        text="SELECT name, type, pk FROM pragma_table_info('posts');",
        description="Columns of the posts table, including frontmatter-derived columns.",
    ),
)


class QueryLibrary:
    """Read-only registry of example queries."""

    def __init__(self, queries: tuple[ExampleQuery, ...] = EXAMPLE_QUERIES) -> None:
        self._queries = queries

    def list(self) -> tuple[ExampleQuery, ...]:
        """Return all examples in registration order."""
        return self._queries

    def get(self, query_id: str) -> ExampleQuery | None:
        """Return the first example registered under an id, or None."""
        for query in self._queries:
            if query.id == query_id:
                return query
        return None

    def select(self, query_id: str) -> str | None:
        """Return an example's text, or None if the id is unknown."""
        query = self.get(query_id)
        return query.text if query is not None else None
