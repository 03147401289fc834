# Importing the handler modules registers them on the shared bus
from tapflow.services.event_bus import bus
from . import discovery, enrichment, scoring, content, outreach_sender

all_functions = bus.functions

__all__ = ["bus", "all_functions"]
