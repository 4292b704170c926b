"""
Service layer abstraction.

Each service encapsulates business logic for a domain.  API handlers
stay thin and delegate to the classmethods defined here.
"""
