"""Infrastructure: Redis cache, data protection, and Azure AD token management."""
