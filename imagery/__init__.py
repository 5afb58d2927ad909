"""
Imagery: Mapillary metadata client and HTTP host

- mapillary.MapillaryService: bbox query against graph.mapillary.com/images
- server: FastAPI app composing the client with the walker store
    /images/nearby, /walker, /walker/move, /walker/images, /token, /health
"""
