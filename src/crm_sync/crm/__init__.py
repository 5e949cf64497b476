"""Local CRM data layer -- models, pick-lists and note link helpers.

Provides SQLAlchemy models (User, Account, Contact, Lead, Opportunity, Task,
Note, NoteAssociation), the NotableKind closed enum for polymorphic note
links, and attach()/notes_for()/notables_for() for working with those links.
"""
