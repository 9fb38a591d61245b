"""Line ingest webapp - upload, job creation and job status endpoints."""

__version__ = "0.1.0"
