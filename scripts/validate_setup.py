#!/usr/bin/env python
"""Validate setup - check dependencies, configuration and provider access."""
import sys
import asyncio
from pathlib import Path

# Color codes for terminal output
GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
BLUE = "\033[94m"
RESET = "\033[0m"

def print_success(msg):
    print(f"{GREEN}✓{RESET} {msg}")

def print_error(msg):
    print(f"{RED}✗{RESET} {msg}")

def print_info(msg):
    print(f"{BLUE}ℹ{RESET} {msg}")

def print_warning(msg):
    print(f"{YELLOW}⚠{RESET} {msg}")

def print_section(title):
    print(f"\n{BLUE}{'='*60}{RESET}")
    print(f"{BLUE}{title:^60}{RESET}")
    print(f"{BLUE}{'='*60}{RESET}\n")

async def main():
    print_section("PDF Chat - Setup Validation")

    errors = []
    warnings = []

    # 1. Python version check
    print_section("1. Python Environment")
    python_version = f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}"
    print_info(f"Python version: {python_version}")
    if sys.version_info >= (3, 11):
        print_success("Python version >= 3.11")
    else:
        print_error("Python version < 3.11 (required)")
        errors.append("Python version too old")

    # 2. Import core dependencies
    print_section("2. Core Dependencies")

    dependencies = [
        ("quart", "Quart web framework"),
        ("hypercorn", "Hypercorn ASGI server"),
        ("httpx", "HTTP client"),
        ("pinecone", "Pinecone client"),
        ("pypdf", "PDF text extraction"),
        ("pydantic", "Data validation"),
        ("structlog", "Structured logging"),
        ("pytest", "Testing framework"),
    ]

    for module_name, description in dependencies:
        try:
            __import__(module_name)
            print_success(f"{description:30} ({module_name})")
        except ImportError as e:
            print_error(f"{description:30} ({module_name}) - {e}")
            errors.append(f"Missing: {module_name}")

    # 3. Configuration
    print_section("3. Configuration")

    sys.path.insert(0, str(Path(__file__).parent.parent))
    from docchat import config

    print_success("Config loaded successfully")
    print_info(f"  Generation model: {config.HF_MODEL}")
    print_info(f"  Embedding model: {config.EMBEDDING_MODEL} (dim {config.EMBEDDING_DIMENSION})")
    print_info(f"  Pinecone index: {config.PINECONE_INDEX_NAME}")
    print_info(f"  Chunk size: {config.CHUNK_SIZE} chars")
    print_info(f"  Max upload size: {config.MAX_FILE_SIZE} bytes")

    for name in ("HUGGINGFACE_API_KEY", "PINECONE_API_KEY"):
        if getattr(config, name):
            print_success(f"{name} is set")
        else:
            print_error(f"{name} is not set")
            errors.append(f"Missing {name}")

    if errors:
        return errors, warnings

    from docchat.services import build_services
    services = build_services()

    # 4. Hugging Face embeddings
    print_section("4. Hugging Face Inference")

    try:
        embedding = await services.embedder.embed("test")
        print_success(f"Embedding API working (dimension: {len(embedding)})")
        if len(embedding) != config.EMBEDDING_DIMENSION:
            print_error(f"Expected dimension {config.EMBEDDING_DIMENSION}, got {len(embedding)}")
            errors.append("Embedding dimension mismatch")
    except Exception as e:
        print_error(f"Embedding test failed: {e}")
        errors.append(f"Embedding error: {e}")

    # 5. Pinecone
    print_section("5. Pinecone Index")

    try:
        names = await services.vector_store.list_index_names()
        if config.PINECONE_INDEX_NAME in names:
            print_success(f"Index exists: {config.PINECONE_INDEX_NAME}")
        else:
            print_warning(f"Index {config.PINECONE_INDEX_NAME} not found; it is created on first upload")
            warnings.append("Index not created yet")
    except Exception as e:
        print_error(f"Pinecone check failed: {e}")
        errors.append(f"Pinecone error: {e}")

    # 6. Summary
    print_section("Summary")

    if not errors:
        print_success("All checks passed! ✨")
    else:
        print_error(f"Found {len(errors)} error(s):")
        for i, error in enumerate(errors, 1):
            print(f"  {i}. {error}")

    if warnings:
        print_warning(f"\nFound {len(warnings)} warning(s):")
        for i, warning in enumerate(warnings, 1):
            print(f"  {i}. {warning}")

    print()
    return errors, warnings

if __name__ == "__main__":
    errors, warnings = asyncio.run(main())
    sys.exit(1 if errors else 0)
