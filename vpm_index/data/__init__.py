"""
Index state for the VPM package index.

This package is responsible for:
* Loading an existing channel index, or seeding a new one.
* Adding newly released package versions without touching existing ones.
* Filling in and guarding archive checksums.
* Writing the index back at the end of a run.
"""
