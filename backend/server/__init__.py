"""
Photo Scraper Server

Configuration, error types and the FastAPI application factory
(server.app.create_app) wiring the image scraper and image downloader routers.
"""
