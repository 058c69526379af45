"""Scouting statistics service for the 2023 FRC game, CHARGED UP."""
