import uuid

import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


def plan_fields():
    return [
        ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
        ('audit_ref', models.CharField(blank=True, help_text='Audit response the plan was raised from', max_length=64)),
        ('template_name', models.CharField(blank=True, max_length=255)),
        ('description', models.TextField()),
        ('priority', models.CharField(choices=[('Low', 'Low'), ('Medium', 'Medium'), ('High', 'High')], default='Medium', max_length=10)),
        ('status', models.CharField(choices=[('pending', 'Pending'), ('in_progress', 'In progress'), ('completed', 'Completed')], db_index=True, default='pending', max_length=20)),
        ('assigned_to', models.CharField(db_index=True, max_length=254)),
        ('assigned_to_name', models.CharField(blank=True, max_length=255)),
        ('created_by', models.CharField(db_index=True, max_length=254)),
        ('created_by_name', models.CharField(blank=True, max_length=255)),
        ('due_date', models.DateTimeField(blank=True, null=True)),
        ('is_new', models.BooleanField(default=True)),
        ('viewed_at', models.DateTimeField(blank=True, null=True)),
        ('latest_comment', models.TextField(blank=True)),
        ('status_history', models.JSONField(blank=True, default=list)),
        ('completed_at', models.DateTimeField(blank=True, null=True)),
        ('organization_ref', models.CharField(blank=True, db_index=True, max_length=40)),
        ('team_ref', models.CharField(blank=True, max_length=40)),
        ('created_at', models.DateTimeField(auto_now_add=True)),
        ('updated_at', models.DateTimeField(auto_now=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='Organization',
            fields=[
                ('id', models.CharField(help_text="Unique identifier for the organisation (e.g. 'org1')", max_length=40, primary_key=True, serialize=False)),
                ('name', models.CharField(max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
        ),
        migrations.CreateModel(
            name='User',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('role', models.CharField(choices=[('carer', 'Carer'), ('nurse', 'Nurse'), ('manager', 'Manager'), ('admin', 'Administrator')], default='carer', max_length=10)),
                ('organization', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='users', to='careboard.organization')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='user_set', related_query_name='user', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='user_set', related_query_name='user', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'abstract': False,
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='ResidentAuditActionPlan',
            fields=plan_fields() + [
                ('resident_ref', models.CharField(blank=True, max_length=64)),
            ],
            options={'abstract': False},
        ),
        migrations.CreateModel(
            name='CareFileAuditActionPlan',
            fields=plan_fields() + [
                ('resident_ref', models.CharField(blank=True, max_length=64)),
                ('care_file_reference', models.CharField(blank=True, max_length=255)),
            ],
            options={'abstract': False},
        ),
        migrations.CreateModel(
            name='GovernanceAuditActionPlan',
            fields=plan_fields(),
            options={'abstract': False},
        ),
        migrations.CreateModel(
            name='ClinicalAuditActionPlan',
            fields=plan_fields(),
            options={'abstract': False},
        ),
        migrations.CreateModel(
            name='EnvironmentAuditActionPlan',
            fields=plan_fields(),
            options={'abstract': False},
        ),
        migrations.CreateModel(
            name='Notification',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('recipient', models.CharField(db_index=True, max_length=254)),
                ('sender', models.CharField(blank=True, max_length=254)),
                ('sender_name', models.CharField(blank=True, max_length=255)),
                ('kind', models.CharField(choices=[('action_plan_status_updated', 'action_plan_status_updated'), ('action_plan_completed', 'action_plan_completed')], max_length=64)),
                ('title', models.CharField(max_length=255)),
                ('message', models.TextField()),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('is_read', models.BooleanField(default=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'indexes': [models.Index(fields=['recipient', 'is_read', 'created_at'], name='careboard_n_recipie_idx')],
            },
        ),
    ]
