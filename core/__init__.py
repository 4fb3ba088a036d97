"""core/ -- Settings, database engine helpers, and the storage error hierarchy."""
