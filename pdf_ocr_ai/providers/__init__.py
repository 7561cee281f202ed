"""Extraction providers for content that needs more than native text decoding.

``image_extract`` turns painted raster images into content items enriched with
OCR text and an optional vision-model description.
"""
