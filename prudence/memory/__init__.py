"""In-memory cache backend."""