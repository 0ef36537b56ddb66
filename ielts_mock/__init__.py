"""IELTS mock exam engine: content normalization and exam sessions."""
