"""Constants for the similarity engine."""

# Lightweight model: 384 dimensions, ~50 MB ONNX
DEFAULT_MODEL_NAME: str = "BAAI/bge-small-en-v1.5"

# Texts longer than this are split into overlapping chunks
CHUNK_SIZE: int = 1800
CHUNK_OVERLAP: int = 200

# Weight of chunk i is CHUNK_WEIGHT_DECAY ** i (earlier chunks dominate)
CHUNK_WEIGHT_DECAY: float = 0.8

DEFAULT_CACHE_SIZE: int = 1000

# Items scored concurrently per group in batch_similarity
DEFAULT_CONCURRENCY: int = 10

# Context point extraction limits
MIN_BULLET_LENGTH: int = 10
MAX_BULLET_LENGTH: int = 200
MIN_QUESTION_LENGTH: int = 15
MAX_CONTEXT_POINTS: int = 30

# Minimum cosine similarity for a context point to explain a match
MIN_POINT_MATCH_SCORE: float = 0.35
