"""Chat with an uploaded PDF through retrieval-augmented generation."""
