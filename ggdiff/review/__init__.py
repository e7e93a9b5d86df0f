"""Local and imported pull request review comments."""