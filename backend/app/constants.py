DEFAULTS = {
    # Completion model served locally behind the completion capability
    "LLM_MODEL": "TinyLlama/TinyLlama-1.1B-Chat-v1.0",
    # LLM output length limit (tokens)
    "LLM_MAX_NEW_TOKENS": 1024,
    # LLM sampling temperature
    "LLM_TEMPERATURE": 0.3,
    # Nucleus sampling threshold
    "LLM_TOP_P": 0.9,
    # Sentence encoder behind the embedding capability
    "EMBEDDING_MODEL": "sentence-transformers/all-MiniLM-L6-v2",
    # Stored embedding length; encoder output is padded or truncated to it
    "EMBEDDING_DIMENSION": 1536,
    # Embed nodes right after create/update (failures are logged, not raised)
    "AUTO_EMBED": True,
    # Default model for GraphRAG answers
    "ANSWER_MODEL": "gemini-2.5-flash",
    # Default model for extraction, summaries and link suggestions
    "ANALYSIS_MODEL": "gemini-2.5-pro",
    # Embedding call timeout in seconds (0 = no timeout)
    "EMBED_TIMEOUT_S": 30.0,
    # Completion call timeout in seconds (0 = no timeout)
    "COMPLETION_TIMEOUT_S": 120.0,
    # Text longer than this is truncated before embedding
    "MAX_EMBED_CHARS": 8000,
    # Vector search defaults
    "VECTOR_THRESHOLD": 0.7,
    "VECTOR_LIMIT": 10,
    # pg_trgm-compatible similarity cutoff for text search
    "TEXT_SIMILARITY_THRESHOLD": 0.3,
    "TEXT_LIMIT": 20,
    # Upper bound for neighbor traversal depth
    "MAX_TRAVERSAL_DEPTH": 3,
    # find-similar defaults
    "SIMILAR_THRESHOLD": 0.5,
    "SIMILAR_TOP_K": 3,
    # hybrid search: text hits enriched with neighbors
    "HYBRID_TOP_K": 5,
    # GraphRAG retrieval
    "GRAPHRAG_VECTOR_THRESHOLD": 0.4,
    "GRAPHRAG_TOP_K": 5,
    "GRAPHRAG_NEIGHBOR_DEPTH": 1,
    # Extraction limits
    "EXTRACTION_TITLE_MAX_CHARS": 100,
    "EXTRACTION_MAX_INPUT_CHARS": 50000,
    # Seed data (nodes.parquet / edges.parquet) loaded at startup
    "PROCESSED_DIR": "data/processed",
    # Owner that seed rows are loaded under
    "SEED_OWNER_ID": "",
}
