"""RAG (Retrieval-Augmented Generation) pipeline components.

This package contains modules for:
- PDF text extraction
- Sentence chunking with overlap
- Embedding generation
- Pinecone vector storage
- Retrieval-augmented answering
"""
