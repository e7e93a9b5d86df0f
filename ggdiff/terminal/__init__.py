"""Terminal colour palette queries and parsing."""