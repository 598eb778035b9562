"""
Hash partition layout for the `counters` table.

The parent table is declared PARTITION BY HASH (key); this module renders
the child tables counters_p0 … counters_p{N-1}. N is fixed at deployment
time (settings.COUNTER_PARTITIONS) and consumed only by migrations.
"""

from hits.models.counter import Counter

PARENT_TABLE = Counter.__tablename__


def partition_name(remainder: int) -> str:
    return f"{PARENT_TABLE}_p{remainder}"


def partition_names(partition_count: int) -> list[str]:
    if partition_count < 1:
        raise ValueError("partition_count must be at least 1")
    return [partition_name(i) for i in range(partition_count)]


def create_partitions_sql(partition_count: int) -> list[str]:
    """
    CREATE TABLE statements for every hash partition.

    IF NOT EXISTS makes re-running the migration body harmless.
    """
    return [
        (
            f"CREATE TABLE IF NOT EXISTS {name} "
            f"PARTITION OF {PARENT_TABLE} "
            f"FOR VALUES WITH (MODULUS {partition_count}, REMAINDER {i})"
        )
        for i, name in enumerate(partition_names(partition_count))
    ]


def drop_partitions_sql(partition_count: int) -> list[str]:
    return [
        f"DROP TABLE IF EXISTS {name}"
        for name in reversed(partition_names(partition_count))
    ]
