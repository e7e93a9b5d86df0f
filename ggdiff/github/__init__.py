"""GitHub REST client, response types and a short-lived response cache."""