from rrdoubles.models.competitor_snapshot import CompetitorSnapshot

__all__ = [
    "CompetitorSnapshot",
]
