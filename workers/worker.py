"""Worker script to run Celery workers."""

from workers.celery_app import celery_app

if __name__ == "__main__":
    # Start worker on the review queue
    celery_app.worker_main(
        argv=[
            "worker",
            "--loglevel=info",
            "--concurrency=4",
            "-Q",
            "default,reviews",
        ]
    )
