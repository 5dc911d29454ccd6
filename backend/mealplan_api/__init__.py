"""Meal Planner REST backend: accounts, login and token verification."""
