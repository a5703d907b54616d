"""Query helpers shared by handlers, projectors and read services."""

BATCH_SIZE = 200


def fetch_all(repo, batch_size: int = BATCH_SIZE, **filters) -> list:
    """Return every record matching ``filters``, reading in fixed-size batches.

    Providers apply a default limit to unbounded queries, so scans that must
    see the whole set walk it page by page.
    """
    records = []
    offset = 0
    while True:
        batch = repo._dao.query.filter(**filters).offset(offset).limit(batch_size).all().items
        records.extend(batch)
        if len(batch) < batch_size:
            return records
        offset += batch_size
