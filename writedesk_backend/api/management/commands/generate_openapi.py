from pathlib import Path

from django.core.management.base import BaseCommand
from drf_yasg.codecs import OpenAPICodecJson
from drf_yasg.generators import OpenAPISchemaGenerator

from config.urls import schema_info


class Command(BaseCommand):
    help = "Write the OpenAPI document for the HTTP API to a JSON file."

    def add_arguments(self, parser):
        parser.add_argument(
            "--output",
            default="interfaces/openapi.json",
            help="Destination path (default: interfaces/openapi.json).",
        )

    def handle(self, *args, **options):
        schema = OpenAPISchemaGenerator(schema_info()).get_schema(request=None, public=True)

        output = Path(options["output"])
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(OpenAPICodecJson(validators=[], pretty=True).encode(schema))

        self.stdout.write(self.style.SUCCESS(f"OpenAPI schema written to {output}"))
