"""Pushgate: Web Push bildirimleri, canlı akış (SSE) ve onay süreçleri."""

__version__ = "1.0.0"
