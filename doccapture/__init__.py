"""Document Capture Core.

Image enhancement for photographed or uploaded identity documents and
rule-based extraction of structured fields (dates, document number,
name, nationality) from the text an external OCR step produces.
"""
