"""memctl — a one-shot llama-cli launcher that keeps a trimmed conversation memory."""

__version__ = "0.1.0"
