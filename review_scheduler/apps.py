from django.apps import AppConfig


class ReviewSchedulerConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "review_scheduler"
    verbose_name = "Spaced-repetition review scheduler"
