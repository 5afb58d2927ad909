"""
Street Walker Test Suite

Structure:
- unit/: geo helpers, types, config, Mapillary client, walker store
- integration/: FastAPI host; live Mapillary check (needs MAPILLARY_ACCESS_TOKEN)
"""
