# Versioned API routes live under v1/; the Prometheus scrape endpoint is unversioned
from . import prometheus as prometheus, v1 as v1
