from django.core.management.base import BaseCommand
from django.utils import timezone

from clinical.services.dashboard import invalidate_dashboard
from clinical.services.events import send_to_group, workspace_group
from clinical.services.notifications import purge_expired
from clinical.services.tasks import send_due_reminders


class Command(BaseCommand):
    help = "Remind assignees of tasks coming due, purge expired notifications and refresh workspace boards."

    def add_arguments(self, parser):
        parser.add_argument('--minutes', type=int, default=60,
                            help='Remind tasks due within this many minutes (default 60).')

    def handle(self, *args, **options):
        now = timezone.now()
        reminded = send_due_reminders(minutes=options['minutes'], now=now)
        purged = purge_expired(now)

        # Boards showing these tasks reload their counts
        workspace_ids = sorted({t.workspace_id for t in reminded})
        for ws_id in workspace_ids:
            invalidate_dashboard(ws_id)
            send_to_group(workspace_group(ws_id), {
                'type': 'workspace.event',
                'event': 'tasks.refresh',
                'workspace_id': ws_id,
                'data': {'task_ids': [t.id for t in reminded if t.workspace_id == ws_id], 'ts': now.isoformat()},
            })

        self.stdout.write(self.style.SUCCESS(
            f"Sent {len(reminded)} reminders, purged {purged} notifications, "
            f"refreshed {len(workspace_ids)} workspaces at {now}"
        ))
