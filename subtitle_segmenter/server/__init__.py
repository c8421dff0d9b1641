"""HTTP API for the subtitle segmenter (FastAPI app and pydantic models)."""
