"""Interface state: file tree, comment composing and the commit overlay."""