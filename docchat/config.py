"""Application configuration with sensible defaults."""
import os

# Provider credentials
HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY", "")
PINECONE_API_KEY = os.getenv("PINECONE_API_KEY", "")

# Hugging Face inference configuration
HF_BASE_URL = os.getenv("HF_BASE_URL", "https://router.huggingface.co")
HF_MODEL = os.getenv("HF_MODEL", "meta-llama/Llama-3.1-8B-Instruct")
HF_TIMEOUT = float(os.getenv("HF_TIMEOUT", "60.0"))
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2")
EMBEDDING_DIMENSION = int(os.getenv("EMBEDDING_DIMENSION", "384"))  # all-MiniLM-L6-v2

# Generation parameters
GENERATION_MAX_TOKENS = int(os.getenv("GENERATION_MAX_TOKENS", "300"))
GENERATION_TEMPERATURE = float(os.getenv("GENERATION_TEMPERATURE", "0.3"))
GENERATION_TOP_P = float(os.getenv("GENERATION_TOP_P", "0.95"))

# Pinecone index
PINECONE_INDEX_NAME = os.getenv("PINECONE_INDEX_NAME", "pdf-chat")
PINECONE_CLOUD = os.getenv("PINECONE_CLOUD", "aws")
PINECONE_REGION = os.getenv("PINECONE_REGION", "us-east-1")
INDEX_SETTLE_SECONDS = float(os.getenv("INDEX_SETTLE_SECONDS", "60"))

# RAG parameters (character-based)
CHUNK_SIZE = int(os.getenv("CHUNK_SIZE", "1000"))
CHUNK_OVERLAP = int(os.getenv("CHUNK_OVERLAP", "200"))
RETRIEVAL_TOP_K = int(os.getenv("RETRIEVAL_TOP_K", "4"))

# Ingestion pacing (provider rate limits)
EMBED_BATCH_SIZE = int(os.getenv("EMBED_BATCH_SIZE", "10"))
EMBED_BATCH_DELAY = float(os.getenv("EMBED_BATCH_DELAY", "0.5"))
UPSERT_BATCH_SIZE = int(os.getenv("UPSERT_BATCH_SIZE", "100"))

# Embedding retries
EMBED_MAX_ATTEMPTS = int(os.getenv("EMBED_MAX_ATTEMPTS", "3"))
EMBED_RETRY_DELAY = float(os.getenv("EMBED_RETRY_DELAY", "1.0"))

# Uploads
MAX_FILE_SIZE = int(os.getenv("MAX_FILE_SIZE", "10485760"))  # 10MB

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
