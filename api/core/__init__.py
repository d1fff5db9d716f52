"""
Shared, cross-cutting code for the API.

`core/` holds the data-access building blocks every feature uses: DB wiring,
the entity store, listing/toggle/ownership engines, and the media client.
Feature packages (e.g. `videos/`) keep their own rules and call into these.
"""
