"""
API package containing the HTTP routes.

``router`` groups the book endpoints and is mounted under the API
prefix by ``create_app``; the informational root endpoint lives in
``endpoints.info`` and is mounted without a prefix.
"""
