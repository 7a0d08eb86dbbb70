"""Matching module - eligibility gate, scoring, explanations, partner compatibility."""
