"""Utility modules for Solvent."""
