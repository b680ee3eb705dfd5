"""Feature packages for the tenant API client."""
