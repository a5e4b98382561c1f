"""Shared registries, cached representations, encodings, config helpers and service lifecycle."""