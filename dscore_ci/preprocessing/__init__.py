"""Preprocessing: constants, participant ids and trial cleaning."""
