"""
Server Module
aiohttp entry point for the web app
"""
