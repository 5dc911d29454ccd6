"""Device side of the Meal Planner: API client, session storage and login lockout."""
