"""SpaceTraders Operator: registers Agents and keeps their access tokens in Secrets."""
