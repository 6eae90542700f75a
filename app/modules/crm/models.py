# The CRM board reads and updates the leads table (see app/modules/leads/models.py)
# Pipeline order: new -> contacted -> visit_scheduled -> negotiation -> closed | lost
