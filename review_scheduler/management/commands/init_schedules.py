from django.core.management.base import BaseCommand, CommandError

from review_scheduler.errors import NotFoundError, SchedulerError
from review_scheduler.services import initialize_flashcard, initialize_note


class Command(BaseCommand):
    help = "Make flashcards schedulable for a learner (existing schedules are kept)."

    def add_arguments(self, parser):
        parser.add_argument("--user", required=True, help="Learner UUID")
        target = parser.add_mutually_exclusive_group(required=True)
        target.add_argument("--note", help="Initialize every flashcard of this note")
        target.add_argument("--flashcard", help="Initialize a single flashcard")

    def handle(self, *args, **options):
        user_id = options["user"]
        try:
            if options.get("note"):
                created = initialize_note(options["note"], user_id)
                self.stdout.write(
                    self.style.SUCCESS(
                        f"Initialized {created} new schedule(s) for note {options['note']}"
                    )
                )
            else:
                state = initialize_flashcard(options["flashcard"], user_id)
                self.stdout.write(
                    self.style.SUCCESS(
                        f"Flashcard {state.flashcard_id} due {state.next_review_date.isoformat()}"
                    )
                )
        except NotFoundError as e:
            raise CommandError(f"Not found: {e}") from e
        except SchedulerError as e:
            raise CommandError(f"Error initializing schedules: {e}") from e
