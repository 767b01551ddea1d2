"""Services layer for the recording uploader.

Services implement the upload workflow on top of the infrastructure clients:
- uploader: Retry orchestration, progress reporting and asset lifecycle
"""
