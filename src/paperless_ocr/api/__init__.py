"""OCR vendor API: request building, authentication, models, and the client."""
