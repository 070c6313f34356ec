# Force SQLModel table registration at test discovery time
# This ensures all models are registered before any test database creation
from rrdoubles.models.competitor_snapshot import CompetitorSnapshot  # noqa: F401
