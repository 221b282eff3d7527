"""
Domain layer for feedback-loop report classification.

This layer contains:
- Data models (type-safe structures)
- Classification rules (FBL detection, recipient resolution)
- Processing pipeline (raw message -> ClassifiedMail)
"""
