"""Thread-safe in-memory storage engine."""