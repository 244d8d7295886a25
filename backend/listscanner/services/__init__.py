"""
List Scanner Backend — Services Layer
======================================

What:  Business logic between the HTTP routes and the repositories.

Service Inventory:
    - text_parser: OCR text → ordered item candidates (pure functions)
    - ListCreationService: parse + one-transaction list/items insert
    - ScanService: consent gate and photo OCR status lifecycle around list creation
    - ImageCropService: cut the selected region out of a photo before OCR
    - OcrEngine (abstract) / GeminiOcrEngine: text recognition
    - FileService: photo upload validation, storage and deletion
"""
