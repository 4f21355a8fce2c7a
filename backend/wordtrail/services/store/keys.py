# Names of every key the game keeps in the store.
# They match the layout already present in deployed data, so do not rename.

# Returns: string. Last issued category code; WATCHed by every writer.
SEQUENCE = 'latestCategoryCode'

# Returns: hash. code -> encoded CategoryRecord
CATEGORIES = 'usersCategories'

# Returns: hash. code -> comma separated words
WORDS = 'categoriesWords'

# Returns: hash. user id -> encoded UserLedger
LEDGERS = 'userIDs'

# Returns: hash. post id -> "code:creatorUserID"
POST_LINKS = 'postCategories'

# Returns: string. id of the hub post
MAIN_POST = 'mainPostID'

# Sorted indexes, member is the category code
BY_TIME = 'categoriesByTime'
BY_PLAYS = 'categoriesByPlays'
BY_SCORE = 'categoriesByScore'

INDEXES = {
    'time': BY_TIME,
    'plays': BY_PLAYS,
    'score': BY_SCORE,
}
