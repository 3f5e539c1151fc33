import random
from typing import List

from whodidit.errors import QuestionSupplyError

# Players answer with the name of someone in the room.
QUESTIONS = (
    "Who is most likely to become famous?",
    "Who would survive longest in a zombie apocalypse?",
    "Who is most likely to forget their own birthday?",
    "Who would win a karaoke battle?",
    "Who is most likely to adopt ten cats?",
    "Who would be the worst roommate?",
    "Who is most likely to get lost in their own town?",
    "Who would make the best teacher?",
    "Who is most likely to cry during a cartoon?",
    "Who would you call to help hide a surprise party?",
    "Who is most likely to eat the last slice without asking?",
    "Who would become a millionaire first?",
    "Who is most likely to fall asleep at a party?",
    "Who would win a reality TV show?",
    "Who is the worst at keeping secrets?",
    "Who is most likely to run a marathon?",
    "Who would be the first to leave a horror movie?",
    "Who is most likely to move to another country?",
    "Who would make the best stand-up comedian?",
    "Who is most likely to text the wrong person?",
    "Who would you trust with your phone unlocked?",
    "Who is most likely to start a band?",
    "Who would cook the best holiday dinner?",
    "Who is most likely to be late to their own wedding?",
    "Who would be the best detective?",
    "Who is most likely to buy something useless at 3 a.m.?",
    "Who would give the best life advice?",
    "Who is most likely to win the lottery and lose the ticket?",
    "Who would be the best president?",
    "Who is most likely to dance on the table tonight?",
)


def get_random_questions(count: int, corpus=QUESTIONS) -> List[str]:
    """Draw ``count`` distinct prompts in random order.

    Raises QuestionSupplyError when ``count`` is not between 1 and the size
    of the corpus; prompts are never repeated to fill a game.
    """
    if count < 1:
        raise QuestionSupplyError('At least one question is required')
    if count > len(corpus):
        raise QuestionSupplyError(f'Only {len(corpus)} questions are available, {count} requested')
    return random.sample(list(corpus), count)
