from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.core.management.base import BaseCommand, CommandError

from users.models import AppRole
from users.services.identity_service import IdentityService

User = get_user_model()


class Command(BaseCommand):
    help = 'Assign an application role to a user (bootstraps the first super admin)'

    def add_arguments(self, parser):
        parser.add_argument('email', help='Email of the user receiving the role')
        parser.add_argument(
            'role',
            choices=[role.value for role in AppRole],
            help='Role to assign',
        )
        parser.add_argument(
            '--by',
            dest='assigned_by',
            help='Email of the assigning user (defaults to the first Django superuser)',
        )

    def handle(self, *args, **options):
        try:
            user = User.objects.get(email=options['email'])
        except User.DoesNotExist:
            raise CommandError(f"No user with email {options['email']}")

        if options.get('assigned_by'):
            try:
                assigned_by = User.objects.get(email=options['assigned_by'])
            except User.DoesNotExist:
                raise CommandError(f"No user with email {options['assigned_by']}")
        else:
            assigned_by = User.objects.filter(is_superuser=True).order_by('id').first()
            if assigned_by is None:
                raise CommandError('No Django superuser found; pass --by explicitly')

        try:
            user_role = IdentityService().assign_role(user, options['role'], assigned_by)
        except (PermissionError, ValidationError) as e:
            raise CommandError(str(e))

        self.stdout.write(
            self.style.SUCCESS(
                f"✅ {user.email} is now {user_role.get_role_display()} "
                f"(assigned by {assigned_by.email})"
            )
        )
