from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Team",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("external_id", models.CharField(max_length=36, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("slug", models.SlugField(max_length=255, unique=True)),
                ("acronym", models.CharField(blank=True, default="", max_length=255)),
                ("location", models.CharField(blank=True, default="", max_length=5)),
                ("image_url", models.CharField(blank=True, default="", max_length=500)),
                ("stats", models.JSONField(blank=True, null=True)),
                ("last_games", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="Player",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("external_id", models.CharField(max_length=36, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("slug", models.SlugField(max_length=255, unique=True)),
                ("first_name", models.CharField(blank=True, default="", max_length=255)),
                ("last_name", models.CharField(blank=True, default="", max_length=255)),
                ("nationality", models.CharField(blank=True, default="", max_length=5)),
                ("birthday", models.DateField(blank=True, null=True)),
                ("image_url", models.CharField(blank=True, default="", max_length=500)),
                ("stats", models.JSONField(blank=True, null=True)),
                ("last_games", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "current_team",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="current_players",
                        to="esports.team",
                    ),
                ),
                ("teams", models.ManyToManyField(blank=True, related_name="roster_players", to="esports.team")),
            ],
        ),
        migrations.CreateModel(
            name="Tournament",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("external_id", models.BigIntegerField(unique=True)),
                ("name", models.CharField(max_length=255)),
                ("slug", models.CharField(blank=True, default="", max_length=255)),
                ("begin_at", models.DateTimeField(blank=True, null=True)),
                ("end_at", models.DateTimeField(blank=True, null=True)),
                ("country", models.CharField(blank=True, default="", max_length=2)),
                ("detailed_stats", models.BooleanField(default=False)),
                ("has_bracket", models.BooleanField(default=False)),
                ("league_id", models.BigIntegerField(blank=True, null=True)),
                ("league", models.JSONField(blank=True, null=True)),
                ("live_supported", models.BooleanField(default=False)),
                ("matches", models.JSONField(blank=True, null=True)),
                ("expected_roster", models.JSONField(blank=True, null=True)),
                ("parsed_teams", models.JSONField(blank=True, null=True)),
                ("prizepool", models.CharField(blank=True, max_length=255, null=True)),
                ("prizepool_currency", models.CharField(blank=True, default="", max_length=3)),
                ("region", models.CharField(blank=True, default="", max_length=255)),
                ("serie_id", models.BigIntegerField(blank=True, null=True)),
                ("serie", models.JSONField(blank=True, null=True)),
                ("tier", models.CharField(blank=True, default="", max_length=255)),
                ("type", models.CharField(blank=True, default="", max_length=255)),
                ("winner_id", models.BigIntegerField(blank=True, null=True)),
                ("winner_type", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("players", models.ManyToManyField(blank=True, related_name="tournaments", to="esports.player")),
                ("teams", models.ManyToManyField(blank=True, related_name="tournaments", to="esports.team")),
            ],
        ),
        migrations.CreateModel(
            name="Game",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("external_id", models.CharField(max_length=36, unique=True)),
                ("name", models.CharField(max_length=255)),
                ("status", models.CharField(default="unknown", max_length=50)),
                ("begin_at", models.DateTimeField(blank=True, null=True)),
                ("end_at", models.DateTimeField(blank=True, null=True)),
                ("match", models.JSONField(blank=True, null=True)),
                ("map", models.JSONField(blank=True, null=True)),
                ("winner", models.JSONField(blank=True, null=True)),
                ("rounds", models.JSONField(blank=True, null=True)),
                ("rounds_score", models.JSONField(blank=True, null=True)),
                ("results", models.JSONField(blank=True, null=True)),
                ("data", models.JSONField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "tournament",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="games",
                        to="esports.tournament",
                    ),
                ),
                ("players", models.ManyToManyField(blank=True, related_name="games", to="esports.player")),
                ("teams", models.ManyToManyField(blank=True, related_name="games", to="esports.team")),
            ],
        ),
        migrations.CreateModel(
            name="SyncState",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("job", models.CharField(max_length=100, unique=True)),
                ("last_run_at", models.DateTimeField(blank=True, null=True)),
                ("last_success_at", models.DateTimeField(blank=True, null=True)),
                ("error_count", models.IntegerField(default=0)),
                ("last_error", models.TextField(blank=True, default="")),
                ("last_error_at", models.DateTimeField(blank=True, null=True)),
                ("meta", models.JSONField(blank=True, default=dict)),
            ],
        ),
    ]
