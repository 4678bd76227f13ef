from storefront_pay.utils.logger import setup_logger

notification_logger = setup_logger("notification_worker", log_file="notification_worker.log")

__all__ = ["notification_logger"]
