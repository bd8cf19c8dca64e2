from cardintake.models.batch import Batch
from cardintake.models.card import Card
from cardintake.models.card_pair import CardPair
from cardintake.models.job import Job, JobEvent
from cardintake.models.upload import Upload

__all__ = ["Batch", "Upload", "CardPair", "Job", "JobEvent", "Card"]
